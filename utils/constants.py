APP_NAME = "Gastos BCN"
APP_WIDTH = 1200
APP_HEIGHT = 760
DB_FILE = "gastos.db"
DATE_FORMAT = "%Y-%m-%d"
DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%S"

PERSONAS = ("Ana", "Valen")
DEFAULT_PERSONA = "Ana"

CATEGORY_NAME_MAX = 100
DESCRIPTION_MAX = 500
AMOUNT_MIN = 0.01
AMOUNT_MAX = 999_999.99
PAGE_SIZE_DEFAULT = 20
PAGE_SIZE_MAX = 100
MOST_USED_DEFAULT = 5
MOST_USED_MAX = 50

DEFAULT_SERVER_HOST = "127.0.0.1"
DEFAULT_SERVER_PORT = 8765
DEFAULT_REQUEST_TIMEOUT = 15.0

EMPTY_CONCEPT = "Movimiento sin concepto"

# Beach palette
CATEGORY_COLORS = [
    "#1e3a8a",
    "#3b82f6",
    "#fbbf24",
    "#f97316",
    "#06b6d4",
    "#fb7185",
    "#f59e0b",
]

DEFAULT_CATEGORIES = [
    {"name": "Supermercado",  "description": "Compra semanal",          "color": "#3b82f6"},
    {"name": "Restaurantes",  "description": "Comidas y cenas fuera",   "color": "#f97316"},
    {"name": "Transporte",    "description": "Metro, bus y taxis",      "color": "#06b6d4"},
    {"name": "Hogar",         "description": "Alquiler y suministros",  "color": "#1e3a8a"},
    {"name": "Ocio",          "description": None,                      "color": "#fb7185"},
    {"name": "Salud",         "description": None,                      "color": "#fbbf24"},
    {"name": "Otros",         "description": None,                      "color": "#f59e0b"},
]

SEVERITY_COLORS = {
    "error":   "#F44336",
    "warning": "#FF9800",
    "info":    "#2196F3",
    "success": "#4CAF50",
}

SEVERITY_ICONS = {
    "error":   "❗",
    "warning": "⚠",
    "info":    "ℹ",
    "success": "✔",
}
