# Permissions that can be granted to back-office users
AVAILABLE_PERMISSIONS = [
    {"id": "dashboard", "label": "Dashboard"},
    {"id": "orders", "label": "Bestellingen"},
    {"id": "rides", "label": "Ritten"},
    {"id": "albums", "label": "Albums"},
    {"id": "products", "label": "Producten"},
    {"id": "categories", "label": "Categorieën"},
    {"id": "members", "label": "Leden"},
    {"id": "site_settings", "label": "Site Instellingen"},
    {"id": "site_images", "label": "Site Afbeeldingen"},
    {"id": "users", "label": "Gebruikers"},
    {"id": "whatsapp", "label": "WhatsApp"},
]

PERMISSION_IDS = [p["id"] for p in AVAILABLE_PERMISSIONS]
