# GTD task manager: client-side task store, drag-and-drop protocol and REST backend
#
# Components:
#   schema.py      - Data model (Task, TaskCategory, Priority, form payloads)
#   storage.py     - Key/value "local storage" (SQLite or in-memory)
#   events.py      - Store change notifications
#   store.py       - TaskStore: canonical collection, write-through persistence
#   projection.py  - Category views, sort rules and counts
#   dnd.py         - Drag session, transfer payload codec, list and sidebar drop targets
#   board.py       - GtdBoard view model wiring store, list, sidebar and edit modal
#   repository.py  - SQLite task table behind the REST API
#   ratelimit.py   - Sliding-window limiter for the API
#   client.py      - requests-based REST client
#   config.py      - YAML / environment configuration
