import xarray as xr

from .base import ConnectivityResult
from .utils import _restore_xarray_attrs

_RESERVED = ('method', 'ref_row_names', 'row_names', 'indices', 'n_avg',
             'comment', 'time_vector', 'data_structure')


def _xarray_to_conn(array):
    """Create a connectivity result from xarray.

    Parameters
    ----------
    array : xarray.DataArray
        Xarray containing the connectivity data.

    Returns
    -------
    conn : instance of ConnectivityResult
        An instantiated connectivity result.
    """
    # get the data
    data = array.values

    # restore the attributes netCDF could not store as is
    attrs = _restore_xarray_attrs(array.attrs)
    freqs = array.coords.get('freqs').values.tolist()
    times = attrs.get('time_vector', array.coords.get('times').values)

    kwargs = {key: val for key, val in attrs.items() if key not in _RESERVED}
    conn = ConnectivityResult(
        data=data, method=attrs['method'],
        ref_row_names=attrs['ref_row_names'], row_names=attrs['row_names'],
        freqs=freqs, times=times, indices=attrs['indices'],
        n_avg=attrs['n_avg'], comment=attrs['comment'], **kwargs)
    return conn


def read_connectivity(fname):
    """Read connectivity data from netCDF file.

    Parameters
    ----------
    fname : str | pathlib.Path
        The filepath.

    Returns
    -------
    conn : instance of ConnectivityResult
        The connectivity result.
    """
    # open up a data-array using xarray
    # The engine specified requires the ability to save
    # complex data types, which was not natively supported
    # in xarray. Therefore, h5netcdf is the only engine
    # to support that feature at this moment.
    conn_da = xr.open_dataarray(fname, engine='h5netcdf')
    conn_da.load()
    conn_da.close()
    return _xarray_to_conn(conn_da)
