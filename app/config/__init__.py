# =============================================================================
# Django Project Configuration Package
# =============================================================================
# Settings, URL routing and the ASGI/WSGI entry points for the messaging
# backend. The ASGI application serves both HTTP and the chat WebSocket.
# =============================================================================
