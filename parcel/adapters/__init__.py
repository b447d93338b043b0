"""
Adapters — collaborators of the lifecycle core.

    base.py      abstract contracts
    registry.py  builder backend lookup
    mock.py      recording test doubles
"""
