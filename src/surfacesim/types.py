import numpy as np
import numpy.typing as npt

VEC3 = npt.NDArray[np.float64]
SCALAR = npt.NDArray[np.float64]
INDEX = npt.NDArray[np.int32]
FIXED = npt.NDArray[np.int64]
MASK = npt.NDArray[np.bool_]
UV = npt.NDArray[np.float32]
PROJ = npt.NDArray[np.float32]
