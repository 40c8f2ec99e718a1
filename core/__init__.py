"""
Core lobby logic.

- state_machine: legal game state transitions
- lobby_manager: create / join / status / cancel
- storage: persistence gateway
- tracing: per-request trace ids for logging
"""
