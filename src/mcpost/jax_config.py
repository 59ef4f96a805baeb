"""
JAX Configuration - MUST be imported before any JAX imports.

This module sets environment variables for JAX configuration including:
- 64-bit floating point (log densities of long chains need double precision)
- Persistent compilation cache directory
- Minimum compile time threshold for caching
"""
import os
from pathlib import Path

# --- PRECISION ---
# Acceptance ratios and Beta/Gamma log densities are accumulated in log space;
# float32 loses too much precision for hyperparameters in the hundreds.
os.environ.setdefault("JAX_ENABLE_X64", "True")

# Suppress XLA C++ warnings; does not affect JAX compilation time messages
os.environ.setdefault("TF_CPP_MIN_LOG_LEVEL", "2")

# --- PERSISTENT COMPILATION CACHE ---
# Enables cross-session caching of compiled sampler loops
_JAX_CACHE_DIR = Path.home() / ".cache" / "jax" / "mcpost_cache"
_JAX_CACHE_DIR.mkdir(parents=True, exist_ok=True)
os.environ.setdefault("JAX_COMPILATION_CACHE_DIR", str(_JAX_CACHE_DIR))
os.environ.setdefault("JAX_PERSISTENT_CACHE_MIN_COMPILE_TIME_SECS", "1.0")
