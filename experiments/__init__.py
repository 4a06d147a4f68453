"""
Example systems built on the qsim kernel (grocery checkout, porta-potty line,
blood bank, single-server utilization curve) and the replicated experiment
harness that runs them.
"""
