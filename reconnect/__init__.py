"""
Reconnect - registry of missing and displaced persons.

A searchable record set on the client, persisted by a small local
server that writes data/persons.json and uploaded images under img/.
"""

__version__ = "0.1.0"
