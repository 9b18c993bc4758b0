"""
Services Package for Food Order Bot
===================================

Business logic shared by the conversation flow, the owner command
interpreter and the dashboard routes. Route and flow handlers stay thin
and call into these modules.

Modules:
--------
- **session.py**: Conversation session stores (in-memory or database)
- **catalog.py**: Restaurant and menu lookups, returned as snapshots
- **order.py**: Customer and order persistence
- **notifications.py**: Notification fan-out (dashboard rows + WhatsApp)
"""
