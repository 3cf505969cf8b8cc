"""catalog/ -- Fabrics, accessories, products, design ideas, client requirements.

Layer rule: catalog/ imports only stdlib, third-party libraries, and core/.
It knows nothing about users, sessions, or the audit log.
"""
