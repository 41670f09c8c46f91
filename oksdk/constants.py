from __future__ import annotations

import logging

LOGGER = logging.getLogger("oksdk")
APP_VERSION = "0.1.0"

API_URL = "http://api.odnoklassniki.ru/fb.do"
TOKEN_URL = "http://api.odnoklassniki.ru/oauth/token.do"
AUTHORIZE_URL = "http://www.odnoklassniki.ru/oauth/authorize"

DEFAULT_SETTINGS_PREFIX = "OK_SDK_"

PARAMETER_NAME_ACCESS_TOKEN = "access_token"
PARAMETER_NAME_REFRESH_TOKEN = "refresh_token"

# Markers searched for verbatim in API response bodies.
SESSION_EXPIRED_MARKER = '"error_code":102'
ERROR_CODE_MARKER = '"error_code"'

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
