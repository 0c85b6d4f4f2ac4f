import markus

_metrics = markus.get_metrics()

incr = _metrics.incr
gauge = _metrics.gauge
timing = _metrics.timing
