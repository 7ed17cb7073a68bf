"""
Prometheus metrics for state machine transitions.
"""

import logging
from typing import Iterable, Optional
from prometheus_client import CollectorRegistry, Counter, Histogram, REGISTRY, Enum as PrometheusEnum

logger = logging.getLogger(__name__)


class TransitionMetrics:
    """
    Prometheus collectors for one state machine.

    Attach an instance through the ``metrics`` argument of ``StateMachine``.
    Collector names are derived from ``name``, so each machine sharing a
    registry needs a distinct name.
    """

    def __init__(self,
                 name: str,
                 states: Iterable[str],
                 registry: Optional[CollectorRegistry] = REGISTRY):
        """
        Initialize metrics.

        Args:
            name: Name of the state machine
            states: Every state the machine can be in
            registry: Registry the collectors are registered with
        """
        self.name = name
        metric_name = name.lower().replace('-', '_')

        # Enum metrics want a fixed, non-empty list of states
        self.state_names = sorted(set(states)) or ['']
        self.state_metric = PrometheusEnum(
            f'{metric_name}_state',
            f'Current state of {name}',
            states=self.state_names,
            registry=registry
        )

        self.transition_counter = Counter(
            f'{metric_name}_transitions_total',
            'Total state transitions',
            labelnames=['from_state', 'to_state'],
            registry=registry
        )

        self.rejected_counter = Counter(
            f'{metric_name}_rejected_transitions_total',
            'Transition attempts refused by the transition table',
            labelnames=['from_state', 'to_state'],
            registry=registry
        )

        self.handler_error_counter = Counter(
            f'{metric_name}_handler_errors_total',
            'Failures raised by event handlers',
            labelnames=['event'],
            registry=registry
        )

        self.transition_latency = Histogram(
            f'{metric_name}_transition_latency_seconds',
            'Latency of state transitions including handlers',
            labelnames=['from_state', 'to_state'],
            buckets=(0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1),
            registry=registry
        )

    @classmethod
    def for_table(cls, name: str, table: dict, initial: str = '',
                  registry: Optional[CollectorRegistry] = REGISTRY) -> "TransitionMetrics":
        """Build metrics covering every state named in a transition table"""
        states = set(table)
        for targets in table.values():
            states.update(targets)
        if initial:
            states.add(initial)
        return cls(name, states, registry=registry)

    def set_state(self, state: str):
        if state in self.state_names:
            self.state_metric.state(state)
        else:
            logger.debug(f"State '{state}' not tracked by {self.name} metrics")

    def record_transition(self, from_state: str, to_state: str, latency: float):
        self.transition_counter.labels(from_state=from_state, to_state=to_state).inc()
        self.transition_latency.labels(from_state=from_state, to_state=to_state).observe(latency)

    def record_rejected(self, from_state: str, to_state: str):
        self.rejected_counter.labels(from_state=from_state, to_state=to_state).inc()

    def record_handler_error(self, event: str):
        self.handler_error_counter.labels(event=event).inc()
