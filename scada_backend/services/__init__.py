"""
SCADA Backend Services

- device - Registry, connectivity tester, probes, and protocol clients
"""
