"""Internal constants shared across the library."""

API_URL = "https://api.wheretheiss.at/v1/satellites/25544"
USER_AGENT = "isstrack/0 (+aiohttp)"

# Fields every position payload must carry as numbers.
REQUIRED_FIELDS: tuple[str, ...] = ("latitude", "longitude", "altitude", "velocity")

# ------------------------------------------------------------------
# Camera behaviour
# ------------------------------------------------------------------

#: Zoom used when centering on the first sample and when flying back to it.
WIDE_ZOOM = 5
#: Fly-to animation length in seconds.
FLY_TO_DURATION = 1.5

# ------------------------------------------------------------------
# Display scaling reference maxima
# ------------------------------------------------------------------

#: Roughly the upper edge of the ISS orbit, in km.
ALTITUDE_REFERENCE_MAX = 450.0
#: Roughly orbital velocity at that altitude, in km/h.
VELOCITY_REFERENCE_MAX = 28000.0

SECONDS_PER_DAY = 24 * 3600
