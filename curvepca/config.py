import os

# ── PCA / solver ──────────────────────────────────────────────────────────────
JACOBI_MAX_ITERATIONS = 100
JACOBI_TOLERANCE      = 1e-8
# Total variance below this is treated as constant data
VARIANCE_FLOOR        = 1e-12
# Components used by the residual model (Level, Slope, Curvature)
N_FACTORS             = 3
# Residual std below this counts as zero (z-score 0)
RESIDUAL_STD_FLOOR    = 1e-10

# ── Rolling windows (trading days) ────────────────────────────────────────────
ROLLING_VARIANCE_WINDOW = 60
ROLLING_LOADINGS_WINDOW = 30

# ── Backtest ──────────────────────────────────────────────────────────────────
DEFAULT_WINDOW_SIZE   = 60
DEFAULT_Z_THRESHOLD   = 1.5
TRADING_DAYS_PER_YEAR = 252
CARRY_DAY_COUNT       = 360
BPS                   = 10_000

# ── Environment ───────────────────────────────────────────────────────────────
FRED_API_KEY = os.environ.get("FRED_API_KEY")
LOG_LEVEL    = os.environ.get("CURVEPCA_LOG_LEVEL", "WARNING")
