"""
History access layer: the contract the engines consume.

Modules
-------
repository   : DateRange, HistoryRepository (abstract contract), and
               ResilientHistory (turns storage failures into "no data").
sqlite_store : SQLiteHistoryRepository — the contract over the SQLite
               repositories in ``elaro.db.repositories``.
"""
