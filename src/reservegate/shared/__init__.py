"""Models, math and errors shared by the gateway service and its clients."""
