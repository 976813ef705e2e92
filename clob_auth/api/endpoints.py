"""CLOB REST endpoint paths."""

# L0 (public)
OK = "/"
TIME = "/time"

# L1 (wallet signature)
CREATE_API_KEY = "/auth/api-key"
DERIVE_API_KEY = "/auth/derive-api-key"

# L2 (API key HMAC)
GET_API_KEYS = "/auth/api-keys"
DELETE_API_KEY = "/auth/api-key"
POST_ORDER = "/order"
CANCEL = "/order"
CANCEL_ORDERS = "/orders"
CANCEL_ALL = "/cancel-all"
ORDERS = "/data/orders"
GET_ORDER = "/data/order/"
