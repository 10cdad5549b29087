from .docs import fill_doc
from .utils import (
    _prepare_xarray_attrs,
    _restore_xarray_attrs,
    compress_sym,
    decompress_sym,
)
