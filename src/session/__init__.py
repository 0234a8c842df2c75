"""Per-call websocket session engine.

One SessionController runs per connection; the SessionRegistry held on the
FastAPI app keeps at most one live session per call id.
"""
