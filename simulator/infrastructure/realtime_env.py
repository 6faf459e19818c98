"""
Wall-clock paced SimPy environment

Runs the dispatch simulation so that environment seconds track real
seconds: a one-second dispatch tick becomes a one-second pause, a
0.5 s floor-to-floor move a half-second pause.
"""

import time

import simpy


class RealtimeEnvironment(simpy.Environment):
    """
    SimPy environment synchronized with real time.

    Args:
        speed_factor (float): Environment seconds per real second
            - 1.0 = real-time
            - 2.0 = double speed
            - 0.0 = no delay (plain SimPy behavior)
    """

    def __init__(self, speed_factor: float = 1.0, initial_time: float = 0):
        if speed_factor < 0:
            raise ValueError("speed_factor cannot be negative")
        super().__init__(initial_time=initial_time)
        self.speed_factor = speed_factor
        self.real_start_time = time.monotonic()
        self.sim_start_time = self.now

    def step(self):
        """
        Process the next event, then sleep until real time catches up with
        the environment clock.
        """
        result = super().step()

        if self.speed_factor > 0:
            sim_elapsed = self.now - self.sim_start_time
            target_real_time = self.real_start_time + (sim_elapsed / self.speed_factor)
            sleep_time = target_real_time - time.monotonic()
            if sleep_time > 0:
                time.sleep(sleep_time)

        return result

    def get_speed(self) -> float:
        return self.speed_factor
