"""
FileRecord module - the record store for shared files.

One FileRecord is kept per uploaded blob. It carries the access code a
recipient types, an optional password hash and the download counter that
bounds how many times the blob may be served.
"""
