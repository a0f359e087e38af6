# Presentation Layer
# ==================
# FastAPI routes: health, QR page, status and send-message.
