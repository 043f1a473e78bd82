"""
Organization membership feature module.

Resolves which organization a user is acting in, the role they hold there,
and the capability flags derived from that role.
"""
