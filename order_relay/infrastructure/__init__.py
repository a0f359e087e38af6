# Infrastructure Layer
# ====================
# Contains all external service integrations:
# - whatsapp/: Selenium-based WhatsApp Web automation behind an event adapter
# - orders/: order-management API client
# - config/: Environment and settings management
#
# This layer can be replaced entirely without affecting domain/application layers.
