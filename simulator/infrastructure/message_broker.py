import simpy


class MessageBroker:
    """
    Mediates communication between the Dispatcher and the cabins.
    Implements a topic-based publish-subscribe model.

    Topics in use:
    - cabin/<name>/command: destination commands for one cabin
    - cabin/<name>/status: cabin status reports
    - cabin/<name>/door_events: door open/close events
    - dispatcher/arrived: trips dropped off by a cabin
    - dispatcher/assignment, dispatcher/recall: dispatch decisions

    Every message is also copied to a broadcast pipe for the recorder.
    """
    def __init__(self, env: simpy.Environment, verbose: bool = True):
        """
        Initialize the message broker

        Args:
            env (simpy.Environment): SimPy environment
            verbose (bool): Print every published message
        """
        self.env = env
        self.verbose = verbose
        self.topics = {}  # Dictionary to hold Store for each topic
        self.broadcast_pipe = simpy.Store(self.env)

    def get_pipe(self, topic: str) -> simpy.Store:
        """
        Get or create a communication pipe (Store) for the specified topic
        """
        if topic not in self.topics:
            self.topics[topic] = simpy.Store(self.env)
        return self.topics[topic]

    def put(self, topic: str, message):
        """
        Publish (put) a message to the specified topic
        """
        if self.verbose:
            print(f"{self.env.now:.2f} [Broker] Publish on '{topic}': {message}")
        pipe = self.get_pipe(topic)
        self.broadcast_pipe.put({'topic': topic, 'message': message})
        return pipe.put(message)

    def get(self, topic: str):
        """
        Wait to receive (get) a message from the specified topic
        """
        pipe = self.get_pipe(topic)
        return pipe.get()

    def get_broadcast_pipe(self) -> simpy.Store:
        """
        Returns the global broadcast pipe read by the Statistics recorder
        """
        return self.broadcast_pipe
