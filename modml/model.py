"""A model: a graph of nodes run in dependency order over named tensors."""

from __future__ import annotations

import logging
from collections import deque
from typing import Iterable, Mapping, Optional

import numpy as np

from modml.node_utils import Node

__all__ = ["Model"]

logger = logging.getLogger(__name__)


def _copy_tensor(value):
    """Deep copy of a tensor held in the io map."""
    return value.copy() if isinstance(value, np.ndarray) else value


class Model:
    """A compute graph of nodes together with its stored tensors.

    ``iomap`` holds the tensors the model starts from (weights, constants),
    ``outputs`` names the tensors returned by :meth:`infer`.
    """

    def __init__(
        self,
        nodes: Iterable[Node],
        iomap: Optional[Mapping[str, np.ndarray]] = None,
        outputs: Optional[Iterable[str]] = None,
    ):
        self.nodes = list(nodes)
        self.iomap = dict(iomap) if iomap is not None else {}
        self.outputs = list(outputs) if outputs is not None else []

    def infer(self, inputs: Mapping[str, np.ndarray]) -> dict[str, np.ndarray]:
        """Run the graph on ``inputs`` and return the model's output tensors.

        Neither the stored tensors nor the given inputs are modified.
        """
        logger.info("==== Starting inference ====")
        if not self.nodes:
            raise RuntimeError("ComputeGraph has no nodes.")

        layers = self.topological_sort()
        logger.info("Topological layers: %d", len(layers))

        local_iomap = {name: _copy_tensor(value) for name, value in self.iomap.items()}
        for name, value in inputs.items():
            logger.info("Setting input: %s", name)
            local_iomap[name] = _copy_tensor(value)

        for layer_idx, layer in enumerate(layers):
            logger.info("Processing layer %d with %d nodes", layer_idx, len(layer))
            for node_idx, node in enumerate(layer):
                node_type = type(node).__name__
                logger.debug("  Processing node %d (type: %s)", node_idx, node_type)
                try:
                    node.forward(local_iomap)
                except IndexError as exc:
                    logger.error(
                        "Out of range error in node %d (type: %s): %s; "
                        "inputs: %s; outputs: %s",
                        node_idx,
                        node_type,
                        exc,
                        " ".join(node.inputs()),
                        " ".join(node.outputs()),
                    )
                    raise
                except Exception as exc:
                    logger.error(
                        "Error in node %d (type: %s): %s", node_idx, node_type, exc
                    )
                    raise
                logger.debug("  Node %d processed successfully", node_idx)

        return {
            name: local_iomap[name] for name in self.outputs if name in local_iomap
        }

    def topological_sort(self) -> list[list[Node]]:
        """Group the nodes into layers; each layer depends only on earlier ones.

        Tensors no node produces are external inputs or initializers.
        """
        if not self.nodes:
            raise RuntimeError("ComputeGraph has no nodes.")

        producers: dict[str, Node] = {}
        for node in self.nodes:
            for output in node.outputs():
                producers[output] = node

        in_degree: dict[Node, int] = {node: 0 for node in self.nodes}
        consumers: dict[Node, list[Node]] = {node: [] for node in self.nodes}
        for consumer in self.nodes:
            for name in consumer.inputs():
                producer = producers.get(name)
                if producer is not None and producer is not consumer:
                    consumers[producer].append(consumer)
                    in_degree[consumer] += 1

        queue = deque(node for node in self.nodes if in_degree[node] == 0)
        layers: list[list[Node]] = []
        processed = 0
        while queue:
            layer = [queue.popleft() for _ in range(len(queue))]
            for node in layer:
                processed += 1
                for successor in consumers[node]:
                    in_degree[successor] -= 1
                    if in_degree[successor] == 0:
                        queue.append(successor)
            layers.append(layer)

        if processed != len(self.nodes):
            raise RuntimeError("ComputeGraph has a cycle.")
        return layers