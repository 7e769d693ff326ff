"""
Project constants definitions
"""

# ============================================================
# Admin API
# ============================================================

DEFAULT_API_VERSION = "2020-10"
API_BASE_PATH = "/admin/api/{version}"
RESOURCE_PAGE_LIMIT = 250
DEFAULT_HTTP_TIMEOUT = 30.0

# ============================================================
# Throttle (leaky bucket)
# ============================================================

# The admin API allows a burst of `bucket_size` requests which leak
# at `leak_rate` per second. `padding` leaves room for requests made
# by other tools against the same store.
DEFAULT_BUCKET_SIZE = 80
DEFAULT_LEAK_RATE = 4
DEFAULT_BUCKET_PADDING = 5

# ============================================================
# Theme Layout
# ============================================================

THEME_DIRS = (
    "assets",
    "config",
    "layout",
    "locales",
    "sections",
    "snippets",
    "templates",
)

# (top-level dir, sub dir) pairs the remote platform allows to nest
PRESERVED_NESTED_DIRS = (("templates", "customers"),)

# Local-only directory whose files are minified and uploaded to the parent dir
INLINE_SCRIPTS_DIR = ("snippets", "inline-scripts")

ASSETS_DIR = "assets"
MINIFIED_MARKER = ".min."
# Minified assets carrying this marker are authored by hand, not generated
AUTHORED_MINIFIED_MARKER = "-tr.min"

DEFAULT_BINARY_FORMATS = (
    ".woff",
    ".woff2",
    ".png",
    ".jpg",
    ".eot",
    ".ttf",
    ".ttc",
    ".gif",
    ".otf",
)

# ============================================================
# Watched Roots
# ============================================================

SCRIPTS_DIR_NAME = "scripts"
STYLES_DIR_NAME = "styles"
THEME_DIR_NAME = "theme"

SCRIPT_ORDER_FILE = "_script-order.js"
MINIFIED_SCRIPT_SUFFIX = ".min.js"

DEFAULT_STYLE_ENTRY = "main.scss"
DEFAULT_STYLE_OUTPUT_KEY = "assets/main.min.css.liquid"

# File-level script events are dropped for this many seconds after a directory event
DIRECTORY_EVENT_QUIET_PERIOD = 1.0

# ============================================================
# External Tools
# ============================================================

DEFAULT_MINIFIER_COMMAND = ("jsmin",)
DEFAULT_STYLE_COMPILER_COMMAND = ("sass", "--no-source-map", "--style=compressed")

# ============================================================
# Local Server
# ============================================================

DEFAULT_PORT = 3000
DEFAULT_HOST = "localhost"
DEFAULT_RELOAD_DELAY = 2.0
MAX_PAGE_REDIRECTS = 5
WEBSOCKET_GREETING = "WebSocket connection established."
PAGE_CACHE_FILE = "store_page_content.html"

RELOAD_CLIENT_SCRIPT = """<script>
(function () {
    var socket = new WebSocket("ws://" + window.location.host + "/");
    socket.onclose = function () {
        setTimeout(function () { window.location.reload(); }, 250);
    };
})();
</script>"""

# ============================================================
# Configuration
# ============================================================

DEFAULT_CONFIG_FILE = "themesync.toml"
DEFAULT_LOCAL_DATA_DIR = ".themesync"
ENV_PREFIX = "THEMESYNC_"
