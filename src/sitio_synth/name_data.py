"""
Sitio Synthetic Data - Name & Palette Data
==========================================
Filipino sitio/purok naming parts and agricultural palettes.
"""

# ============================================================
# SITIO NAMES
# ============================================================

SITIO_PREFIXES_RURAL = ["Sitio", "Purok", "Upper", "Lower"]
SITIO_PREFIXES_URBAN = ["Zone", "Purok", "Phase"]
SITIO_PREFIXES_INDIGENOUS = ["Sitio", "Upper", "Lower"]

SITIO_NAMES_COMMON = [
    "Maligaya", "Masagana", "Pagasa", "Mabuhay", "Kalinaw", "Kalayaan",
    "Bagong Silang", "San Antonio", "San Jose", "San Miguel", "Santa Cruz",
    "Santo Niño", "Fatima", "Guadalupe", "Del Pilar", "Rizal", "Bonifacio",
    "Mabini", "Sampaguita", "Rosal", "Orchid", "Jasmine",
]

SITIO_NAMES_NATURE = [
    "Riverside", "Hillside", "Lakeview", "Mountain View", "Valley View",
    "Spring", "Watershed", "Crossing", "Junction", "Centro",
]

SITIO_NAMES_INDIGENOUS = [
    "Lambayong", "Lamcade", "Lamfugon", "Lemsnolon", "Tudok", "Datal",
    "Kematu", "Salacafe", "Talufo", "Lamhaku", "Desawo", "Afus",
]

# ============================================================
# CROPS & LIVESTOCK
# ============================================================

CROP_OPTIONS_LOWLAND = ["Palay", "Corn", "Vegetables", "Banana", "Coconut", "Cassava"]
CROP_OPTIONS_HIGHLAND = ["Coffee", "Abaca", "Vegetables", "Palay", "Sweet Potato", "Taro"]
CROP_OPTIONS_COMMERCIAL = ["Banana", "Pineapple", "Corn", "Coconut"]

LIVESTOCK_OPTIONS_COMMON = ["Chicken", "Pig", "Duck"]
LIVESTOCK_OPTIONS_RURAL = ["Cow", "Kalabaw", "Goat"]
LIVESTOCK_OPTIONS_HIGHLAND = ["Horse", "Kalabaw", "Goat"]
LIVESTOCK_AQUACULTURE = ["Tilapia", "Carp"]

# Municipalities with lake access (boat transport, aquaculture)
LAKESIDE_MUNICIPALITIES = {"LAKE SEBU"}

BACKYARD_CROP_CATEGORIES = ["Vegetables", "Fruits", "Root Crops"]
