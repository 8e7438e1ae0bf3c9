"""
Secretary Core
==============

Conversational assistant engine for the civic Secretary widget.

This package provides:
- Intent classification and slot filling over a closed set of intents
- A node/transition flow graph with a pure view-model projection
- Mid-conversation repair of previously filled slots
- A backend gateway that degrades failures to neutral results
"""

__version__ = "1.0.0"
