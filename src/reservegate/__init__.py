"""ReserveGate: reserve-backed conversion gateway between a base asset and its wrapped token."""
