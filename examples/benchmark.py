import time
import numpy as np
from waveshaper import CurveType, DistortionParams, EngineConfig, InstanceManager


def benchmark_engine(use_numba, dc_block, signal_len=48000 * 10):
    params = DistortionParams(curve_type=CurveType.SOFT_CLIP, dc_block=dc_block)
    mgr = InstanceManager(params, sample_rate=48000, config=EngineConfig(use_numba=use_numba))
    x = np.random.randn(signal_len) * 0.5

    # warm-up
    mgr.process(x[:4800])

    start = time.perf_counter()
    mgr.process(x, block_size=512)
    elapsed = time.perf_counter() - start

    rt_factor = (signal_len / 48000) / elapsed
    return rt_factor


for dc_block in (False, True):
    print(f"DC blocker {'on' if dc_block else 'off'}:")
    print("  NumPy engine:", round(benchmark_engine(False, dc_block), 1), "× real-time")
    print("  Numba engine:", round(benchmark_engine(True, dc_block), 1), "× real-time")
