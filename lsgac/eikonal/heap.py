class IndexedMinHeap:
    """ A binary min-heap of grid nodes keyed by float values, addressable
    by node so that a node's key can be decreased in O(log n).

    Entries are kept in flat arrays (keys, insertion ticks and node ids in
    heap order) with a node -> heap-position lookup; no per-entry objects
    are allocated. Equal keys are popped in insertion order.
    """

    def __init__(self):
        self._keys = []
        self._ticks = []
        self._nodes = []
        self._position = {}
        self._tick = 0

    def __len__(self):
        return len(self._nodes)

    def __bool__(self):
        return len(self._nodes) > 0

    def __contains__(self, node):
        return node in self._position

    def key(self, node):
        return self._keys[self._position[node]]

    def push(self, node, key):
        """ Insert `node` with `key`, or lower its key if it is already in
        the heap and `key` is smaller. Returns True if the heap changed.
        """
        position = self._position.get(node)

        if position is None:
            self._keys.append(key)
            self._ticks.append(self._tick)
            self._nodes.append(node)
            self._tick += 1
            position = len(self._nodes) - 1
            self._position[node] = position
            self._sift_up(position)
            return True

        if key < self._keys[position]:
            self._keys[position] = key
            self._sift_up(position)
            return True

        return False

    def peek(self):
        if not self._nodes:
            raise IndexError("peek from an empty heap")
        return self._nodes[0], self._keys[0]

    def pop(self):
        """ Remove and return the `(node, key)` pair with the smallest key
        """
        if not self._nodes:
            raise IndexError("pop from an empty heap")

        node, key = self._nodes[0], self._keys[0]

        last = len(self._nodes) - 1
        self._swap(0, last)

        self._keys.pop()
        self._ticks.pop()
        self._nodes.pop()
        del self._position[node]

        if self._nodes:
            self._sift_down(0)

        return node, key

    def _less(self, i, j):
        if self._keys[i] == self._keys[j]:
            return self._ticks[i] < self._ticks[j]
        return self._keys[i] < self._keys[j]

    def _swap(self, i, j):
        keys, ticks, nodes = self._keys, self._ticks, self._nodes
        keys[i], keys[j] = keys[j], keys[i]
        ticks[i], ticks[j] = ticks[j], ticks[i]
        nodes[i], nodes[j] = nodes[j], nodes[i]
        self._position[nodes[i]] = i
        self._position[nodes[j]] = j

    def _sift_up(self, i):
        while i > 0:
            parent = (i - 1) // 2
            if not self._less(i, parent):
                break
            self._swap(i, parent)
            i = parent

    def _sift_down(self, i):
        n = len(self._nodes)
        while True:
            left = 2 * i + 1
            right = left + 1
            smallest = i

            if left < n and self._less(left, smallest):
                smallest = left
            if right < n and self._less(right, smallest):
                smallest = right

            if smallest == i:
                break

            self._swap(i, smallest)
            i = smallest
