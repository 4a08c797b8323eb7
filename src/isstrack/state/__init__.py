"""State layer.

This package holds every piece of mutable tracking state: the trail,
the camera-follow machine, the connection monitor, and the context
that ties them to the highest accepted request sequence.  Only the
acquisition completion handler and the operator signal handlers
mutate it.
"""
