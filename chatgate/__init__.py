"""Access and usage admission control for the chat service.

Resolves callers to verified identities, meters daily chat interactions
against subscription plans and trials, and manages privileged admin
sessions.
"""

__version__ = "1.4.0"
