"""Transform package encoding/decoding for storage."""

import numpy as np
from pathlib import Path
from typing import Dict, Any, Union, Optional

from ..core.config import FilterType
from ..core.coords import Rect
from ..core.engine import TransformPackage
from ..core.sampling import TransformSampleSet


class TransformCodec:
    """Encode/decode per-render transform packages to/from .npy files.

    Format: Single .npy file containing a dict with:
        - matrices: [N, 3, 3] float64 pixel-space inverse transforms
        - weights: [N] float64 sample weights (optional)
        - capacity: allocation ceiling of the sample set
        - motion_blur, black_outside, mix, filter, clamp, do_masking, mask_invert
        - render_window: (x1, y1, x2, y2) (optional)
        - params: evaluated effect parameters
        - meta: additional metadata
    """

    VERSION = 1

    @classmethod
    def encode(
        cls,
        package: TransformPackage,
        meta: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Encode a transform package to a dict for saving.

        Args:
            package: render transform package
            meta: additional metadata

        Returns:
            dict ready for np.save
        """
        data = {
            "version": cls.VERSION,
            "matrices": package.samples.matrices.astype(np.float64),
            "capacity": int(package.samples.capacity),
            "motion_blur": float(package.motion_blur),
            "black_outside": bool(package.black_outside),
            "mix": float(package.mix),
            "filter": package.filter.name.lower(),
            "clamp": bool(package.clamp),
            "do_masking": bool(package.do_masking),
            "mask_invert": bool(package.mask_invert),
        }

        weights = package.samples.weights
        if weights is not None:
            data["weights"] = weights.astype(np.float64)

        if package.render_window is not None:
            data["render_window"] = package.render_window.as_tuple()

        if package.params:
            data["params"] = cls._serialize_params(package.params)

        if meta is not None:
            data["meta"] = meta

        return data

    @classmethod
    def decode(cls, data: Dict[str, Any]) -> TransformPackage:
        """Decode a transform package from a loaded dict."""
        matrices = np.asarray(data["matrices"], dtype=np.float64)
        weights = data.get("weights")
        samples = TransformSampleSet(capacity=max(int(data.get("capacity", len(matrices))), len(matrices), 1))
        for i, m in enumerate(matrices):
            samples.append(m, None if weights is None else float(weights[i]))

        window = data.get("render_window")
        return TransformPackage(
            samples=samples,
            motion_blur=float(data.get("motion_blur", 0.0)),
            black_outside=bool(data.get("black_outside", False)),
            mix=float(data.get("mix", 1.0)),
            filter=FilterType.parse(data.get("filter", "cubic")),
            clamp=bool(data.get("clamp", False)),
            do_masking=bool(data.get("do_masking", False)),
            mask_invert=bool(data.get("mask_invert", False)),
            render_window=None if window is None else Rect.from_sequence(window),
            params=dict(data.get("params", {})),
        )

    @classmethod
    def save(cls, path: Union[str, Path], package: TransformPackage,
             meta: Optional[Dict[str, Any]] = None) -> None:
        """Save a transform package to .npy file."""
        np.save(path, cls.encode(package, meta), allow_pickle=True)

    @classmethod
    def load(cls, path: Union[str, Path]) -> Dict[str, Any]:
        """Load a .npy file.

        Returns:
            dict with "package", "meta" and "version"
        """
        data = np.load(path, allow_pickle=True).item()
        return {
            "package": cls.decode(data),
            "meta": data.get("meta", {}),
            "version": data.get("version", 0),
        }

    @staticmethod
    def _serialize_params(params: Dict[str, Any]) -> Dict[str, Any]:
        """Serialize params to plain python types."""
        serialized = {}
        for k, v in params.items():
            if isinstance(v, np.ndarray):
                serialized[k] = v.tolist()
            elif isinstance(v, (np.floating, np.integer, np.bool_)):
                serialized[k] = v.item()
            else:
                serialized[k] = v
        return serialized
