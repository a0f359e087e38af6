# Order Relay - WhatsApp Group Order Notifications
# =================================================
# Watches one WhatsApp group for "d/<order id>" messages, reports them to the
# order-management API and confirms back in the group. Also exposes a small
# HTTP API for sending WhatsApp messages.
#
# ARCHITECTURE LAYERS:
# - Presentation:   FastAPI routes (web/)
# - Application:    Relay, notifier and reconnect supervisor
# - Domain:         Pure logic (order parsing, session state)
# - Infrastructure: External services (WhatsApp Web, order API, config)
#
# The WhatsApp side sits behind MessagingAdapter, so the Selenium backend
# can be swapped without touching the other layers.
