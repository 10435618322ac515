"""
Content catalog import.

Modules
-------
seed_loader : validate the actions JSON document and materialise it into
              the SQLite store (default focus areas + versioned templates).
"""
