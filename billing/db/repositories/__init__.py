"""
Database access helpers shared by every entity.

`base` holds the generic query/insert/update/delete functions (GUID
allocation, revision stamps, payment tokens). Entity rules live in
`billing.domain`, which calls into these helpers.
"""
