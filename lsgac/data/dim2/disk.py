import logging

import numpy
from scipy.ndimage import gaussian_filter
from skimage.draw import disk as draw_disk


_logger_name = __name__.rsplit('.', 1)[-1]
logger = logging.getLogger(_logger_name)


def make(n=101, r=25, ishift=0, jshift=0, foreground=1.0, background=0.0,
         sigma_noise=0.1, sigma_smooth=2, rs=None):
    """
    Make a bright disk on a dark background with additive noise.

    Parameters
    ----------
    n: int, default=101
        The image and segmentation arrays will be shape (n,n).

    r: float, default=25
        Radius of the disk.

    ishift,jshift: int, default=0
        The center of the disk (index offsets from the center of the image).

    foreground, background: float, default=1.0, 0.0
        The image intensity inside and outside of the disk before smoothing
        and noise.

    sigma_noise: float, default=0.1
        The additive noise amplitude to be added to the image.

    sigma_smooth: float, default=2
        The Gaussian smoothing factor to apply to the image.

    rs: numpy.random.RandomState
        RandomState object for reproducible results.

    Returns
    -------
    img, seg, info : ndarray (dtype=float), ndarray (dtype=bool), dict
        The image and segmentation image are returned as well as
        a dictionary of the parameters used.
    """
    ci = (n - 1) / 2 + ishift
    cj = (n - 1) / 2 + jshift

    if not (ci+r < n-1 and ci-r > 0):
        raise ValueError("Disk outside bounds, axis 0.")
    if not (cj+r < n-1 and cj-r > 0):
        raise ValueError("Disk outside bounds, axis 1.")

    rs = rs if rs is not None else numpy.random.RandomState()

    seg = numpy.zeros((n, n), dtype=bool)
    rr, cc = draw_disk((ci, cj), r, shape=seg.shape)
    seg[rr, cc] = True

    img = numpy.where(seg, foreground, background).astype(float)

    if sigma_smooth > 0:
        img = gaussian_filter(img, sigma_smooth)

    img += sigma_noise * rs.randn(n, n)

    info = dict(
        ci=ci, cj=cj, r=r,
        foreground=foreground,
        background=background,
        sigma_noise=sigma_noise,
        sigma_smooth=sigma_smooth,
    )

    msg = "Made disk image n = {}, r = {}, center = ({}, {})"
    logger.debug(msg.format(n, r, ci, cj))

    return img, seg, info
