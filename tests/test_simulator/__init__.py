"""
Simulator Tests

Tests for the dispatch core:
- SimulationClock and Trip timing
- Cabin boarding, ratchet and recall
- Dispatcher scenarios and conservation
- Trip loading and the Simulation facade
"""
