from .ad_spend import AdSpend
from .appointment import Appointment
from .client import Client
from .lead import Lead, Note
from .notification import Notification
from .quote import Quote, QuoteItem
from .revenue import MwsMonthlyRevenue
from .saved_form import SavedForm
from .user import User
