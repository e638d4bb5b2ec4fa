"""Configuration settings for SafeStep."""

CONFIG = {
    # Progress tracking
    "movement_gate_m": 5,         # meters - ignore position fixes closer than this to the last one
    "advance_distance_m": 20,     # meters - closest segment within this advances the step
    "heading_tolerance_deg": 20,  # degrees - bearing mismatch still counted as heading correct
    "arrival_message": "You have reached your destination.",
    # Heading filter
    "heading_window_s": 1.0,      # seconds - at most one emitted heading per window
    "compass_poll_interval": 0.25,  # seconds between magnetometer reads
    # Position source
    "gps_poll_interval": 3,       # seconds
    "gps_min_distance_m": 5,      # subscription hint only, the movement gate is authoritative
    "gps_timeout": 30,            # seconds per termux-location call
    # Directions provider
    "directions_url": "https://maps.googleapis.com/maps/api/directions/json",
    "directions_timeout": 15,     # seconds
    "directions_mode": "walking",
    "directions_retry_time": 20,  # seconds the app keeps retrying a failed directions request
    # Virtual walk
    "simulated_step_m": 8,        # meters between simulated position fixes
    "simulated_poll_interval": 0.5,  # seconds between simulated fixes
    # Logging
    "log_interval": 10,           # seconds between STATE log entries
    # Speech
    "espeak_rate": 150,           # words per minute
}
