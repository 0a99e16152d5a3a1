"""Policy, directive and source types."""
