"""SOC notifications -- state diffs turned into rate-limited user notifications.

Modules
───────
  events        -- semantic change events (NewAlert, status changes)
  detector      -- previous vs. current snapshot diff
  rate_limiter  -- sliding 60 s window
  center        -- bounded notification queue with auto-dismiss
  dispatcher    -- threshold → rate limit → format → center
"""
