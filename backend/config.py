import os
import datetime

from dotenv import load_dotenv

# Pick up a local .env file during development
load_dotenv()

base_dir = os.path.abspath(os.path.dirname(__file__))


def _env_flag(name, default=False):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """Application settings, read from the environment."""

    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///' + os.path.join(base_dir, 'parkpal.db'))
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Session tokens live in an HTTP-only cookie; a Bearer header works too
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', 'super-secret-key-change-in-prod')
    JWT_TOKEN_LOCATION = ['headers', 'cookies']
    JWT_COOKIE_SECURE = _env_flag('JWT_COOKIE_SECURE')
    JWT_COOKIE_SAMESITE = 'Lax'
    JWT_COOKIE_CSRF_PROTECT = _env_flag('JWT_COOKIE_CSRF_PROTECT', True)
    JWT_ACCESS_TOKEN_EXPIRES = datetime.timedelta(hours=int(os.getenv('JWT_ACCESS_TOKEN_HOURS', '168')))

    # Token revocation store; falls back to process memory when unset
    REDIS_URL = os.getenv('REDIS_URL')

    # Stripe
    STRIPE_SECRET_KEY = os.getenv('STRIPE_SECRET_KEY')
    STRIPE_CURRENCY = os.getenv('STRIPE_CURRENCY', 'usd')
    PREMIUM_PRICE_CENTS = int(os.getenv('PREMIUM_PRICE_CENTS', '99'))

    # Email (premium receipts)
    MAIL_SERVER = os.getenv('MAIL_SERVER', 'localhost')
    MAIL_PORT = int(os.getenv('MAIL_PORT', '1025'))
    MAIL_USE_TLS = _env_flag('MAIL_USE_TLS')
    MAIL_USERNAME = os.getenv('MAIL_USERNAME')
    MAIL_PASSWORD = os.getenv('MAIL_PASSWORD')
    MAIL_DEFAULT_SENDER = os.getenv('MAIL_DEFAULT_SENDER', 'no-reply@parkpal.local')

    CORS_ORIGINS = os.getenv('CORS_ORIGINS', '*')
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    JWT_SECRET_KEY = 'testing-secret-key-with-enough-length-for-hs256'
    JWT_COOKIE_CSRF_PROTECT = False
    REDIS_URL = None
    STRIPE_SECRET_KEY = 'sk_test_parkpal'
    MAIL_SUPPRESS_SEND = True
    LOG_LEVEL = 'DEBUG'
