"""
Synchronization traffic analysis functions
"""

from typing import Any, Dict

import numpy as np

from railsync.params import NetworkParams

# Approximate encoded packet sizes (bytes)
PACKET_SIZES = {
    "absolute": 35,
    "relative": 10,
    "velocity": 11,
    "metadata": 16,
}


class SyncTrafficAnalyzer:
    """Analyzes simulation results for bandwidth use and viewer drift"""

    def __init__(self, params: NetworkParams, bandwidth_budget: float = 1024.0) -> None:
        """
        Initialize traffic analyzer

        Args:
            params: Synchronization thresholds the run used
            bandwidth_budget: Bytes per tick the viewers may receive in total
        """
        self.params = params
        self.bandwidth_budget = bandwidth_budget

    def analyze(
        self, t: np.ndarray, state: np.ndarray, traffic: np.ndarray, drift: np.ndarray
    ) -> Dict[str, Any]:
        """
        Analyze a simulated run

        Args:
            t: Tick array
            state: State history [N x carts x 6]
            traffic: Packet counts [N x 4] with [absolute, relative, velocity, metadata]
            drift: Live to synchronized distance [N x carts]

        Returns:
            Dictionary with analysis results
        """
        absolute = traffic[:, 0]
        relative = traffic[:, 1]
        velocity = traffic[:, 2]
        metadata = traffic[:, 3]
        per_tick = traffic.sum(axis=1)

        sizes = np.array([PACKET_SIZES[k] for k in ("absolute", "relative", "velocity", "metadata")])
        bytes_per_tick = traffic @ sizes
        total_packets = int(per_tick.sum())

        # Longest stretch between two ticks that carried absolute updates
        absolute_ticks = t[absolute > 0]
        if len(absolute_ticks) >= 2:
            longest_absolute_gap = int(np.max(np.diff(absolute_ticks)))
        else:
            longest_absolute_gap = int(len(t))

        # Distance covered by the head cart
        if state.shape[0] > 1 and state.shape[1] > 0:
            steps = np.diff(state[:, 0, :3], axis=0)
            distance = float(np.sum(np.linalg.norm(steps, axis=1)))
            max_speed = float(np.max(np.linalg.norm(state[:, :, 3:], axis=2)))
        else:
            distance = 0.0
            max_speed = 0.0

        drift_max = float(np.max(drift)) if drift.size > 0 else 0.0
        drift_mean = float(np.mean(drift)) if drift.size > 0 else 0.0
        bytes_mean = float(np.mean(bytes_per_tick)) if len(bytes_per_tick) > 0 else 0.0

        return {
            "total_packets": total_packets,
            "absolute_packets": int(absolute.sum()),
            "relative_packets": int(relative.sum()),
            "velocity_packets": int(velocity.sum()),
            "metadata_packets": int(metadata.sum()),
            "packets_per_tick_mean": float(np.mean(per_tick)) if len(per_tick) > 0 else 0.0,
            "packets_per_tick_max": int(np.max(per_tick)) if len(per_tick) > 0 else 0,
            "absolute_share": float(absolute.sum() / total_packets) if total_packets > 0 else 0.0,
            "bytes_total": int(bytes_per_tick.sum()),
            "bytes_per_tick_mean": bytes_mean,
            "over_budget": bytes_mean > self.bandwidth_budget,
            "longest_absolute_gap": longest_absolute_gap,
            "absolute_interval_ok": longest_absolute_gap <= self.params.absolute_update_interval + 1,
            "drift_max": drift_max,
            "drift_mean": drift_mean,
            "distance_travelled": distance,
            "max_speed": max_speed,
        }
