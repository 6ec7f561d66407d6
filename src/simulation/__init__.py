"""SOC live simulation -- synthetic producers on independent schedules.

Modules
───────
  config         -- SimulationConfig tree, YAML parsing and validation
  generators     -- alert / hunt-result / sync-time synthesis
  health         -- integration health state machine, sync monitor
  escalation     -- age-based promotion of stale high-severity alerts
  metrics_drift  -- bounded random walk over dashboard metrics
  team           -- analyst status / workload drift
  scheduler      -- periodic ticks on a single asyncio loop
  engine         -- wires producers, store and notifications together
  cli            -- argparse entry-point
"""
