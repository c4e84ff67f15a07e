"""
Core Audit Model (FINAL)

Defines WHAT an audit is, independent of any store or measurement service.

Invariants:
- Scheduling time is epoch seconds; Result timestamps are epoch milliseconds.
- A Result's id / type / createdTimestamp never change after creation.
- Result status evolves ONLY through the status machine.
- Back-end sub-objects (settings / metadata / metrics) are opaque:
  copied or merged wholesale, never interpreted.

Core explicitly does NOT:
- Perform IO or talk to a measurement service
- Know about JSON / CSV / spreadsheets
- Decide when an action runs

Time is always injected by the caller.
"""
