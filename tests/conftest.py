import os
import tempfile

# Settings are read at import time by the engine and auth modules
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-leadcrm")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver")
os.environ.setdefault("AUDIT_LOG_DIR", tempfile.mkdtemp(prefix="leadcrm-audit-"))
