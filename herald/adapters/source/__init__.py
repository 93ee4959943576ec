"""Finding source adapters.

Implementations fetch findings from the security testing tool:
- GraphQL (findings query over HTTP)
"""
