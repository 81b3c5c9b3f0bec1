"""Services — probes and the PATH mutator."""
