"""
token_broker.api

HTTP surface of the broker.

Responsibilities:
- FastAPI app factory and router modules.
- Map the broker's exception taxonomy onto the `{"message": ...}` envelope.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# The API layer should remain thin: parameter extraction + delegation to the broker.
