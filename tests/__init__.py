"""
Test suite for rail traversal and train synchronization.

This package contains unit tests organized by component:
- test_params.py: Tests for the parameter dataclasses
- test_geometry.py: Tests for block faces and grid helpers
- test_rail_logic.py: Tests for the rail logic variants
- test_rail_types.py: Tests for next-block resolution and rail lookup
- test_member.py: Tests for per-cart physics ticks
- test_group.py: Tests for train membership and group physics
- test_network.py: Tests for the group synchronization scheduler
- test_simulation.py: Tests for the tick driver
- test_transport.py: Tests for viewers and the recording transport
- test_traffic_analysis.py: Tests for synchronization traffic analysis
- test_app.py: Tests for the dashboard callback
- test_integration.py: Integration tests for the full workflow
"""
