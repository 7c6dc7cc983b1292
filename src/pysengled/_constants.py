"""Internal constants shared across the library."""

LOGIN_URL = "https://ucenter.cloud.sengled.com/user/app/customer/v2/AuthenCross.json"
SERVER_INFO_URL = "https://life2.cloud.sengled.com/life2/server/getServerInfo.json"
DEVICE_LIST_URL = "https://life2.cloud.sengled.com/life2/device/list.json"

# Used instead of getServerInfo when the server check is skipped.
DEFAULT_BROKER_URL = "wss://us-mqtt.cloud.sengled.com:443/mqtt"
DEFAULT_BROKER_PORT = 443
DEFAULT_BROKER_PATH = "/mqtt"

# The REST gateway expects this Host value regardless of the endpoint host.
HTTP_HOST_HEADER = "element.cloud.sengled.com:443"
REQUESTED_WITH = "com.sengled.life2"
SESSION_COOKIE = "JSESSIONID"
CLIENT_ID_SUFFIX = "@lifeApp"

MQTT_KEEPALIVE = 30

STATUS_TOPIC = "wifielement/{device}/status"
UPDATE_TOPIC = "wifielement/{device}/update"
STATUS_TOPIC_PATTERN = r"wifielement/([0-9A-F:]+)/status"

LOGIN_BODY_DEFAULTS: dict[str, str] = {
    "uuid": "xxxxxx",
    "osType": "android",
    "productCode": "life",
    "appCode": "life",
}

SWITCH_ATTRIBUTE = "switch"
