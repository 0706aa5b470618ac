import os

# Runs before any test module imports database/main.
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["RATE_LIMIT_ENABLED"] = "0"
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ["RATE_LIMIT_DEFAULT"] = "120/minute"
os.environ["RATE_LIMIT_AUTH"] = "10/minute"
os.environ["REDIS_URL"] = "memory://"
