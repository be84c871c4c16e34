import numpy


def _regions(phi, seg, threshold):
    seg = numpy.asarray(seg)
    if seg.dtype != bool:
        msg = "`seg` dtype ({}) was not of type bool"
        raise ValueError(msg.format(seg.dtype))

    phi = numpy.asarray(phi)
    if phi.shape != seg.shape:
        msg = "`phi` is shape {} but `seg` is shape {}"
        raise ValueError(msg.format(phi.shape, seg.shape))

    return phi <= threshold, seg


def jaccard(phi, seg, threshold=0.0):
    """ The Jaccard overlap score (intersection over union) of the region
    `phi <= threshold` and the reference segmentation `seg`
    """
    inside, seg = _regions(phi, seg, threshold)

    union = numpy.count_nonzero(inside | seg)

    # Two empty regions agree perfectly
    if union == 0:
        return 1.0

    return numpy.count_nonzero(inside & seg) / float(union)


def dice(phi, seg, threshold=0.0):
    """ The Dice coefficient, `2|A & B| / (|A| + |B|)`, of the region
    `phi <= threshold` and `seg`
    """
    inside, seg = _regions(phi, seg, threshold)

    total = numpy.count_nonzero(inside) + numpy.count_nonzero(seg)
    if total == 0:
        return 1.0

    return 2.0 * numpy.count_nonzero(inside & seg) / total
