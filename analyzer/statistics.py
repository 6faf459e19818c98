import json
import re
from datetime import datetime

import matplotlib.pyplot as plt


class Statistics:
    """
    Receives all broker traffic and records what the analysis needs,
    acting as an independent "recorder".

    Collects:
    - cabin trajectories (environment time, floor)
    - door events per cabin
    - a JSON Lines event log for offline playback
    """
    def __init__(self, env, broadcast_pipe):
        self.env = env
        self.broadcast_pipe = broadcast_pipe
        self.cabin_trajectories = {}
        self.door_events_history = {}  # Door events history by cabin
        self.passenger_count_history = {}  # (time, passengers, capacity) by cabin
        self.assignments = []
        self.recalls = []

        # JSON Lines event log
        self.event_log = []
        self.simulation_metadata = {}

    def _add_event_log(self, event_type, event_data):
        """
        Add an event to the JSON Lines log.

        Args:
            event_type (str): Type of event (e.g., 'cabin_status', 'trip_arrived')
            event_data (dict): Event-specific data
        """
        self.event_log.append({
            "time": self.env.now,
            "type": event_type,
            "data": event_data
        })

    def set_simulation_metadata(self, metadata):
        """
        Set simulation metadata (called before the simulation starts).

        Args:
            metadata (dict): Simulation configuration summary
        """
        self.simulation_metadata = {
            "format_version": "1.0",
            "timestamp": datetime.now().isoformat(),
            "config": metadata
        }

    def start_listening(self):
        """
        Main process intercepting the global broadcast.
        """
        while True:
            data = yield self.broadcast_pipe.get()
            self.record(data.get('topic', ''), data.get('message', {}))

    def record(self, topic, message):
        """Dispatch one broadcast message to the matching recorder."""
        status_match = re.search(r'cabin/(.*?)/status', topic)
        if status_match:
            self._record_status(status_match.group(1), message)
            return

        door_match = re.search(r'cabin/(.*?)/door_events', topic)
        if door_match:
            cabin_name = door_match.group(1)
            self.door_events_history.setdefault(cabin_name, []).append({
                'timestamp': message.get('timestamp'),
                'event_type': message.get('event_type'),
                'floor': message.get('floor')
            })
            self._add_event_log('door_event', {
                'cabin': cabin_name,
                'event_type': message.get('event_type'),
                'floor': message.get('floor')
            })
            return

        command_match = re.search(r'cabin/(.*?)/command', topic)
        if command_match:
            self._add_event_log('cabin_command', dict(message, cabin=command_match.group(1)))
            return

        if topic == 'dispatcher/assignment':
            self.assignments.append(message)
            self._add_event_log('trip_assigned', message)
        elif topic == 'dispatcher/recall':
            self.recalls.append(message)
            self._add_event_log('cabin_recall', message)
        elif topic == 'dispatcher/arrived':
            trip = message['trip']
            self._add_event_log('trip_arrived', {
                'cabin': message.get('cabin'),
                'floor': message.get('floor'),
                'trip': trip.to_dict()
            })

    def _record_status(self, cabin_name, message):
        timestamp = message.get('timestamp')
        floor = message.get('current_floor')

        trajectory = self.cabin_trajectories.setdefault(cabin_name, [])
        # Record if not exactly the same as the last data point
        if not trajectory or trajectory[-1] != (timestamp, floor):
            trajectory.append((timestamp, floor))

        counts = self.passenger_count_history.setdefault(cabin_name, [])
        point = (timestamp, message.get('passengers', 0), message.get('capacity'))
        if not counts or counts[-1] != point:
            counts.append(point)

        self._add_event_log('cabin_status', {
            'cabin': cabin_name,
            'floor': floor,
            'destination': message.get('destination_floor'),
            'state': message.get('state'),
            'door_state': message.get('door_state'),
            'passengers': message.get('passengers'),
            'clock': message.get('clock')
        })

    def plot_trajectory_diagram(self, output_filename='cabin_trajectory_diagram.png', show=False):
        """
        Draw the cabin trajectory diagram (floor over time) after the run.

        Args:
            output_filename: PNG file to write
            show: Also open an interactive window

        Returns:
            The output file name
        """
        print("\n--- Plotting: Cabin Trajectory Diagram ---")
        fig = plt.figure(figsize=(14, 8))

        cabin_colors = ['#1f77b4', '#ff7f0e', '#2ca02c', '#d62728', '#9467bd', '#8c564b']

        for idx, name in enumerate(sorted(self.cabin_trajectories)):
            trajectory = self.cabin_trajectories[name]
            if not trajectory:
                continue

            times, floors = zip(*sorted(trajectory, key=lambda x: x[0]))
            color = cabin_colors[idx % len(cabin_colors)]
            plt.step(times, floors, where='post', label=name, linewidth=2.5, color=color, alpha=0.8)

            for event in self.door_events_history.get(name, []):
                if event['event_type'] == 'DOOR_OPENED':
                    plt.scatter(event['timestamp'], event['floor'], marker='s', s=25, color=color, zorder=3)

        plt.title("Cabin Trajectory Diagram")
        plt.xlabel("Time (s)")
        plt.ylabel("Floor")
        plt.grid(True, which='both', linestyle='--', alpha=0.7)

        all_floors = [floor for trajectory in self.cabin_trajectories.values() for _, floor in trajectory]
        if all_floors:
            plt.yticks(range(int(min(all_floors)), int(max(all_floors)) + 2))

        if self.cabin_trajectories:
            plt.legend(loc='upper right', fontsize=10)

        plt.savefig(output_filename, dpi=150, bbox_inches='tight')
        print(f"Trajectory diagram saved to: {output_filename}")

        if show:
            plt.show()
        plt.close(fig)
        return output_filename

    def save_event_log(self, filename='simulation_log.jsonl'):
        """
        Save the event log to a JSON Lines file.

        Args:
            filename (str): Name of the output file
        """
        print(f"\nSaving event log to {filename}...")

        with open(filename, 'w', encoding='utf-8') as f:
            # Metadata goes first
            if self.simulation_metadata:
                f.write(json.dumps({
                    "type": "metadata",
                    "data": self.simulation_metadata
                }) + '\n')

            for event in self.event_log:
                f.write(json.dumps(event, ensure_ascii=False) + '\n')

        print(f"Event log saved: {len(self.event_log)} events written to {filename}")
        return filename
