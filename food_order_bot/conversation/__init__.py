"""
Conversation Package
====================

The customer-facing WhatsApp ordering dialogue.

- models.py: ConversationSession and the snapshots it carries
- messages.py: Text templates for every prompt and reply
- flow.py: One handler per ConversationState
- dispatcher.py: Maps the session's state to its handler
- result.py: FlowResult returned by handlers

Handlers are pure with respect to the transport: they mutate the session,
may create an order, and return the replies and notification events for the
MessageProcessor to carry out.
"""
