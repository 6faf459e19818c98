import itertools
from abc import ABC, abstractmethod
from typing import Any, Optional

import simpy


class Entity(ABC):
    """
    Abstract base class for entities in the SimPy simulation.

    Every entity owns one control loop: the generator returned by ``run()``
    is registered as a SimPy process as soon as the entity is created.
    """
    # Entity ID counter shared across all class instances
    _entity_id_counter = itertools.count()

    def __init__(self, env: simpy.Environment, name: str = None):
        """
        Initialize the entity.

        Args:
            env: The SimPy simulation environment this entity belongs to.
            name: Entity name. If not specified, generated from class name and ID.
        """
        self.env = env
        self.entity_id: int = next(self._entity_id_counter)
        self.name: str = name if name is not None else f"{self.__class__.__name__}_{self.entity_id}"

        # Concrete classes move this to their own initial state
        self.state: str = "initial_state"

        # Cause passed to abort(), recorded when the control loop is interrupted
        self.interrupted_by: Optional[Any] = None

        self._process = self.env.process(self.run())

        print(f'{self.env.now:.2f}: Entity "{self.name}" ({self.__class__.__name__}, ID:{self.entity_id}) created.')

    @abstractmethod
    def run(self):
        """
        Generator serving as the entity's control loop (abstract method).

        Use ``yield`` to wait for events and advance simulation time.
        Implementations catch ``simpy.Interrupt`` at the top of the loop,
        record the cause and return.
        """
        pass

    def set_state(self, new_state: str):
        """
        Transition the entity's state.

        Args:
            new_state: Target state
        """
        if self.state != new_state:
            old_state = self.state
            self.state = new_state
            self._log_state_change(old_state, new_state)

    def get_state(self) -> str:
        return self.state

    def _log_state_change(self, old_state: str, new_state: str):
        print(f'{self.env.now:.2f}: Entity "{self.name}" ({self.__class__.__name__}) state transition: {old_state} -> {new_state}')

    def _record_interrupt(self, interrupt: simpy.Interrupt):
        """Store the interrupt cause and log the early exit."""
        self.interrupted_by = interrupt.cause
        print(f'{self.env.now:.2f} [{self.name}] Control loop interrupted ({interrupt.cause}). Exiting.')

    def abort(self, cause: Any = "abort") -> bool:
        """
        Interrupt the control loop of this entity.

        The loop records ``cause`` in ``interrupted_by`` and exits at its
        current wait.

        Args:
            cause: Reason passed along with the interrupt

        Returns:
            True if the loop was still alive and got interrupted
        """
        if not self._process.is_alive:
            return False
        self._process.interrupt(cause)
        return True

    @property
    def process(self) -> simpy.Process:
        """SimPy process object running this entity's control loop."""
        return self._process

    @property
    def is_alive(self) -> bool:
        return self._process.is_alive
