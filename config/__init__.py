"""
Configuration management package

Provides configuration classes and the YAML loader for the simulator.
"""

from .simulation import (
    SimulationConfig,
    ClockConfig,
    CabinConfig,
    FleetConfig
)

from .config_loader import (
    ConfigLoader,
    load_simulation_config,
    save_simulation_config
)

__all__ = [
    # Simulation
    'SimulationConfig',
    'ClockConfig',
    'CabinConfig',
    'FleetConfig',

    # Loader
    'ConfigLoader',
    'load_simulation_config',
    'save_simulation_config',
]
