# Copyright (c) 2023, multiscale geomechanics lab, Zhejiang University
# This file is from the GeoTaichi project, released under the GNU General Public License v3.0

__author__ = "Shi-Yihao, Guo-Ning"
__version__ = "0.1.0"
__license__ = "GNU License"
__description__ = 'An Explicit Material Point Method for Multiphase Geomechanics'


import platform

import psutil
import pynvml
import taichi as ti

from porotaichi.utils.Exceptions import NumericalDivergence


FLOAT_TYPES = {"float64": ti.f64, "float32": ti.f32}
INT_TYPES = {"int64": ti.i64, "int32": ti.i32}


def gpu_memory_info():
    pynvml.nvmlInit()
    try:
        handle = pynvml.nvmlDeviceGetHandleByIndex(0)
        name = pynvml.nvmlDeviceGetName(handle)
        memory = pynvml.nvmlDeviceGetMemoryInfo(handle)
    finally:
        pynvml.nvmlShutdown()
    return name, memory.total / 1024 ** 3, memory.free / 1024 ** 3


def init(arch="gpu", cpu_max_num_threads=0, offline_cache=True, debug=False, default_fp="float64", default_ip="int32", device_memory_GB=None,
         device_memory_fraction=None, kernel_profiler=False):
    """
    Initializes the Taichi runtime.
    Args:
        arch (str): "cpu" or "gpu".
        cpu_max_num_threads (int): Thread cap of the CPU backend, 0 keeps every hardware thread.
        default_fp (str): "float64" or "float32".
        default_ip (str): "int64" or "int32".
        device_memory_GB (float): Pre-allocated GPU memory, capped by the free memory.
        device_memory_fraction (float): Fraction of the GPU memory, capped by the free fraction.
    """
    if not default_fp in FLOAT_TYPES:
        raise RuntimeError(f"Keyword:: /default_fp: {default_fp}/ is invalid. Only {list(FLOAT_TYPES.keys())} is valid!")
    if not default_ip in INT_TYPES:
        raise RuntimeError(f"Keyword:: /default_ip: {default_ip}/ is invalid. Only {list(INT_TYPES.keys())} is valid!")
    options = {"offline_cache": offline_cache, "debug": debug, "default_fp": FLOAT_TYPES[default_fp], "default_ip": INT_TYPES[default_ip],
               "kernel_profiler": kernel_profiler, "log_level": ti.ERROR}

    if arch == "cpu":
        print(f"Using device {platform.processor()} (Core: {psutil.cpu_count(False)}, Logic: {psutil.cpu_count(True)})")
        if cpu_max_num_threads > 0:
            options["cpu_max_num_threads"] = cpu_max_num_threads
        ti.init(arch=ti.cpu, **options)
    elif arch == "gpu":
        name, total, free = gpu_memory_info()
        print(f"Using device {name} (Total: {round(total, 2)}GB, Available: {round(free, 2)}GB)")
        if device_memory_GB is not None:
            options["device_memory_GB"] = min(device_memory_GB, free)
        elif device_memory_fraction is not None:
            options["device_memory_fraction"] = min(device_memory_fraction, free / total)
        ti.init(arch=ti.gpu, **options)
    else:
        raise RuntimeError(f"Keyword:: /arch: {arch}/ is invalid. Only ['cpu', 'gpu'] is valid!")


def MPM(title=None, log=True):
    if title is None:
        title = __description__

    from porotaichi.mpm.mainMPM import MPM
    return MPM(title=title, log=log)
