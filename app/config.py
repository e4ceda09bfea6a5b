import os

class BaseConfig:
    SECRET_KEY = os.getenv('SECRET_KEY', 'change-me')
    BACKEND_API_URL = os.getenv('BACKEND_API_URL', 'http://localhost:3001/api')
    BACKEND_TIMEOUT = int(os.getenv('BACKEND_TIMEOUT', '10'))
    DEFAULT_TAX_RATE = float(os.getenv('DEFAULT_TAX_RATE', '11'))
    QUOTATION_VALIDITY_DAYS = int(os.getenv('QUOTATION_VALIDITY_DAYS', '30'))
    CATALOG_PAGE_LIMIT = int(os.getenv('CATALOG_PAGE_LIMIT', '100'))
    DRAFT_TTL_MINUTES = int(os.getenv('DRAFT_TTL_MINUTES', '120'))
    EXPORT_DIR = os.getenv('EXPORT_DIR', './exports')
    DEFAULT_SCREEN = '/quotations/'
    SESSION_COOKIE_SAMESITE = 'Lax'
    SESSION_COOKIE_SECURE = False
    SESSION_COOKIE_HTTPONLY = True

class DevConfig(BaseConfig):
    DEBUG = True
    ENV = 'development'

class ProdConfig(BaseConfig):
    DEBUG = False
    ENV = 'production'
    SESSION_COOKIE_SECURE = True

class TestConfig(BaseConfig):
    TESTING = True
    DEBUG = False
    ENV = 'testing'
    SECRET_KEY = 'testing'
    BACKEND_API_URL = 'http://backend.test/api'
