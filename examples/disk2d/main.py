import numpy as np

from lsgac import GeodesicActiveContourPipeline
from lsgac.core.logger import setup_logging
from lsgac.data.dim2 import disk
from lsgac.score_functions import dice, jaccard
from lsgac.util.on_iterate import collect_areas, collect_scores


setup_logging(filename=False)

random_state = np.random.RandomState(1234)


# Create a noisy disk image ###################################################

img, seg, info = disk.make(n=101, r=25, ishift=5, jshift=-3,
                           sigma_noise=0.05, rs=random_state)

# Segment it from one seed near the center ###################################

pipeline = GeodesicActiveContourPipeline(
    img, seeds=[(50, 50)],
    # The gradient magnitude of this image peaks around 0.15 on the edge
    alpha=-0.02, beta=0.1,
    max_iterations=400,
)

scores = []
areas = []

result = pipeline.update(on_iterate=[
    collect_scores(seg, scores, jaccard),
    collect_areas(areas),
])

if result.status != 'succeeded':
    raise SystemExit("Segmentation failed ({}): {}".format(
        result.error_kind, result.error))

evolution = result.evolution
print("Evolution {} after {} iterations (RMS change {:.4f})".format(
    evolution.status, evolution.iterations, evolution.rms_change))
print("Area: {:.0f} -> {:.0f} (true area {})".format(
    areas[0], areas[-1], seg.sum()))
print("Jaccard = {:.3f}, Dice = {:.3f}".format(
    jaccard(evolution.phi, seg), dice(evolution.phi, seg)))

# Only the threshold reruns when it changes ##################################

pipeline.set_parameters(upper_threshold=-1.0)
result = pipeline.update()
print("Recomputed stages: {}".format(', '.join(result.recomputed)))
print("Area of the region phi <= -1: {}".format(result.mask.sum()))
