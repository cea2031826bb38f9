"""Drawing surfaces for a laid-out Scene: interactive matplotlib view and DOT export."""

from collections.abc import Callable, Mapping
import logging
from pathlib import Path
import re

import matplotlib.pyplot as plt
from matplotlib.axes import Axes
from matplotlib.figure import Figure
from matplotlib.lines import Line2D
from matplotlib.patches import Circle, PathPatch
from matplotlib.path import Path as MplPath
import pydot

from config import LayoutConfig, resolve_config
from graph import GraphIndex
from kinship import KinshipSession, KinshipState
from models import KinshipResult, Person, Relationship, Scene, pair_key
from pipeline import build_scene

logger = logging.getLogger(__name__)

# Colour by gender
FILL_COLORS = {"M": "lightblue", "F": "lightpink"}
DEFAULT_FILL = "lightgray"
LINK_COLOR = "darkgray"
SELECTED_COLOR = "#3b82f6"
SECONDARY_COLOR = "#60a5fa"
PATH_COLOR = "#f59e0b"

CURVE_CODES = [MplPath.MOVETO, MplPath.CURVE4, MplPath.CURVE4, MplPath.CURVE4]


def _year(date: str | None) -> str:
    match = re.search(r"\d{4}", date or "")
    return match.group(0) if match else ""


def node_label(person: Person | None) -> str:
    if person is None:
        return ""
    born, died = _year(person.birth_date), _year(person.death_date)
    if born or died:
        return f"{person.full_name}\n{born}-{died}"
    return person.full_name


class TreeView:
    """
    Interactive family tree on a matplotlib Axes.

    y grows downwards, as on screen. Click a person to select them, shift- or
    ctrl-click another to show how the two are related, double-click to
    recentre, scroll to zoom and drag empty space to pan.
    """

    def __init__(
        self,
        ax: Axes,
        scene: Scene,
        index: GraphIndex,
        config: LayoutConfig,
        on_select: Callable[[str], None] | None = None,
        on_compare: Callable[[KinshipResult], None] | None = None,
    ):
        self.ax = ax
        self.scene = scene
        self.index = index
        self.config = config
        self.on_select = on_select
        self.on_compare = on_compare
        self.session = KinshipSession(index)

        self._by_id = {n.id: n for n in scene.nodes}
        self._node_artists: dict[str, Circle] = {}
        self._link_artists: list[tuple] = []
        self._connector_artists: list[tuple] = []
        self._artists: list = []
        self._center = (0.0, 0.0)
        self._scale = 1.0
        self._drag_from = None
        self._timer = None

        self.draw()
        canvas = ax.figure.canvas
        self._cids = [
            canvas.mpl_connect("button_press_event", self._on_press),
            canvas.mpl_connect("button_release_event", self._on_release),
            canvas.mpl_connect("motion_notify_event", self._on_motion),
            canvas.mpl_connect("scroll_event", self._on_scroll),
            canvas.mpl_connect("resize_event", lambda _event: self.resize()),
        ]
        self.fit()

    @property
    def selected_id(self) -> str | None:
        return self.session.primary_id

    @property
    def result(self) -> KinshipResult | None:
        return self.session.result

    # Drawing

    def draw(self):
        ax = self.ax
        ax.set_axis_off()
        ax.set_aspect("auto")
        r = self.config.node_radius

        for link in self.scene.child_links:
            patch = PathPatch(MplPath(link.curve(), CURVE_CODES), fill=False, edgecolor=LINK_COLOR, lw=1, zorder=1)
            ax.add_patch(patch)
            self._link_artists.append((link, patch))

        for connector in self.scene.connectors:
            if connector.kind == "arch":
                artist = PathPatch(
                    MplPath(connector.curve(), CURVE_CODES), fill=False, edgecolor=LINK_COLOR, lw=1.5, zorder=1
                )
                ax.add_patch(artist)
            else:
                (x1, y1), (x2, y2) = connector.curve()
                artist = Line2D([x1, x2], [y1, y2], color=LINK_COLOR, lw=1.5, zorder=1)
                ax.add_line(artist)
            self._connector_artists.append((connector, artist))

        for node in self.scene.nodes:
            gender = node.person.gender if node.person else None
            circle = Circle(
                (node.x, node.y), r, facecolor=FILL_COLORS.get(gender, DEFAULT_FILL), edgecolor="dimgray", zorder=3
            )
            ax.add_patch(circle)
            self._node_artists[node.id] = circle
            text = ax.text(node.x, node.y + r + 16, node_label(node.person), ha="center", va="top", fontsize=7, zorder=4)
            self._artists.append(text)

        self._artists.extend(self._node_artists.values())
        self._artists.extend(a for _, a in self._link_artists)
        self._artists.extend(a for _, a in self._connector_artists)

    def _restyle(self):
        selected = self.session.primary_id
        for person_id, circle in self._node_artists.items():
            circle.set_edgecolor(SELECTED_COLOR if person_id == selected else "dimgray")
            circle.set_linewidth(3 if person_id == selected else 1)

        path_keys = self.session.result.edge_keys if self.session.result else set()
        for link, patch in self._link_artists:
            on_path = any(pair_key(p, link.child_id) in path_keys for p in link.parent_ids)
            if on_path:
                patch.set(edgecolor=PATH_COLOR, lw=4, alpha=1, zorder=2.5)
            elif link.child_id == selected:
                patch.set(edgecolor=SELECTED_COLOR, lw=4, alpha=1, zorder=2.5)
            elif selected in link.parent_ids:
                patch.set(edgecolor=SECONDARY_COLOR, lw=2.25, alpha=0.9, zorder=2)
            else:
                patch.set(edgecolor=LINK_COLOR, lw=1, alpha=1, zorder=1)

        for connector, artist in self._connector_artists:
            highlighted = connector.key in path_keys
            if isinstance(artist, Line2D):
                artist.set(color=PATH_COLOR if highlighted else LINK_COLOR, lw=4 if highlighted else 1.5)
            else:
                artist.set(edgecolor=PATH_COLOR if highlighted else LINK_COLOR, lw=4 if highlighted else 1.5)

        result = self.session.result
        if self.session.state is KinshipState.PATH_DISPLAYED and result is not None:
            source = self.index.people_by_id.get(result.source_id)
            target = self.index.people_by_id.get(result.target_id)
            names = " / ".join(p.full_name for p in (source, target) if p)
            self.ax.set_title(f"{names}: {result.label}")
        else:
            self.ax.set_title("")
        self.ax.figure.canvas.draw_idle()

    # Selection

    def select(self, person_id: str):
        """Make `person_id` the primary selection and centre on it."""
        self.session.select(person_id)
        self._restyle()
        if person_id in self._by_id:
            self.center_on(person_id)

    def compare(self, person_id: str) -> KinshipResult | None:
        """Relate `person_id` to the current selection and highlight the path."""
        result = self.session.compare(person_id)
        self._restyle()
        if result is not None and self.on_compare is not None:
            self.on_compare(result)
        return result

    # Viewport

    def _axes_size(self) -> tuple[float, float]:
        bbox = self.ax.get_window_extent()
        return max(bbox.width, 1.0), max(bbox.height, 1.0)

    def _clamp_scale(self, k: float) -> float:
        return max(self.config.zoom_min, min(self.config.zoom_max, k))

    def _apply(self, center: tuple[float, float], scale: float):
        width, height = self._axes_size()
        cx, cy = center
        half_w = width / (2 * scale)
        half_h = height / (2 * scale)
        self.ax.set_xlim(cx - half_w, cx + half_w)
        self.ax.set_ylim(cy + half_h, cy - half_h)
        self._center = center
        self._scale = scale
        self.ax.figure.canvas.draw_idle()

    def _transition(self, center: tuple[float, float], scale: float):
        if self._timer is not None:
            self._timer.stop()
            self._timer = None
        if self.config.transition_ms <= 0 or not plt.isinteractive():
            self._apply(center, scale)
            return

        steps = max(1, self.config.transition_ms // 30)
        (x0, y0), k0 = self._center, self._scale
        frame = iter(range(1, steps + 1))

        def step():
            i = next(frame, None)
            if i is None:
                self._timer.stop()
                return
            t = i / steps
            self._apply((x0 + (center[0] - x0) * t, y0 + (center[1] - y0) * t), k0 + (scale - k0) * t)

        self._timer = self.ax.figure.canvas.new_timer(interval=30)
        self._timer.add_callback(step)
        self._timer.start()

    def center_on(self, person_id: str):
        node = self._by_id.get(person_id)
        if node is not None:
            self._transition((node.x, node.y), self._scale)

    def fit(self, padding: float = 12):
        """Scale and centre the whole tree inside the axes."""
        try:
            min_x, min_y, max_x, max_y = self.scene.extent()
            r = self.config.node_radius
            min_x, max_x = min_x - r, max_x + r
            min_y, max_y = min_y - r, max_y + r + 16
            bw = (max_x - min_x) or 1
            bh = (max_y - min_y) or 1
            _, height = self._axes_size()
            k = self._clamp_scale((height - padding * 2) / bh)
            self._transition((min_x + bw / 2, min_y + bh / 2), k)
        except ValueError:
            logger.debug("Could not measure the tree; centring on the first person")
            if self.scene.nodes:
                self.center_on(self.scene.nodes[0].id)

    def resize(self):
        """Keep centre and zoom after the figure changes size."""
        self._apply(self._center, self._scale)

    def destroy(self):
        if self._timer is not None:
            self._timer.stop()
        canvas = self.ax.figure.canvas
        for cid in self._cids:
            canvas.mpl_disconnect(cid)
        self._cids = []
        for artist in self._artists:
            artist.remove()
        self._artists = []
        self._node_artists.clear()
        self._link_artists.clear()
        self._connector_artists.clear()
        canvas.draw_idle()

    # Events

    def node_at(self, x: float, y: float) -> str | None:
        """Id of the person drawn under data point (x, y), if any."""
        best = None
        best_d = self.config.node_radius
        for node in self.scene.nodes:
            d = ((node.x - x) ** 2 + (node.y - y) ** 2) ** 0.5
            if d <= best_d:
                best, best_d = node.id, d
        return best

    def _on_press(self, event):
        if event.inaxes is not self.ax or event.xdata is None:
            return
        person_id = self.node_at(event.xdata, event.ydata)
        if person_id is None:
            if event.button == 1:
                self._drag_from = (event.x, event.y, self._center)
            return
        if event.dblclick:
            self.center_on(person_id)
            return
        key = event.key or ""
        if "shift" in key or "control" in key or "ctrl" in key:
            self.compare(person_id)
            return
        self.select(person_id)
        if self.on_select is not None:
            self.on_select(person_id)

    def _on_release(self, _event):
        self._drag_from = None

    def _on_motion(self, event):
        if self._drag_from is None or event.x is None:
            return
        x0, y0, (cx, cy) = self._drag_from
        dx = (event.x - x0) / self._scale
        # Display y grows upwards, data y grows downwards
        dy = (event.y - y0) / self._scale
        self._apply((cx - dx, cy + dy), self._scale)

    def _on_scroll(self, event):
        if event.inaxes is not self.ax or event.xdata is None:
            return
        k = self._clamp_scale(self._scale * (1.2 ** event.step))
        if k == self._scale:
            return
        # Zoom around the cursor
        cx, cy = self._center
        ratio = self._scale / k
        center = (event.xdata + (cx - event.xdata) * ratio, event.ydata + (cy - event.ydata) * ratio)
        self._apply(center, k)


def create_view(
    container: Axes | Figure,
    people: list[Person],
    relationships: list[Relationship],
    config: LayoutConfig | Mapping | None = None,
    on_select: Callable[[str], None] | None = None,
    on_compare: Callable[[KinshipResult], None] | None = None,
) -> TreeView:
    """
    Lay out the family and draw it into `container`.

    Args:
        container: matplotlib Axes, or a Figure to add one to
        people: Person records
        relationships: spouse and parent-child records
        config: LayoutConfig or overrides for the defaults
        on_select: called with the person id when a node is clicked
        on_compare: called with the KinshipResult of a modifier-click

    Raises:
        ValueError: if no container is given, or the config names unknown settings.
    """
    if container is None:
        raise ValueError("Tree container axes is required")
    config = resolve_config(config)
    ax = container.add_subplot() if isinstance(container, Figure) else container
    index = GraphIndex(people, relationships)
    scene = build_scene(people, relationships, config, index=index)
    return TreeView(ax, scene, index, config, on_select=on_select, on_compare=on_compare)


def _hub_name(key: str) -> str:
    return "HUB_" + key.replace("|", "__")


def write_dot(scene: Scene, output_path: Path, config: LayoutConfig | None = None):
    """
    Export a laid-out Scene through Graphviz with every position pinned.

    `.dot`/`.gv` files get the raw DOT source; other extensions (png, svg,
    pdf) are rendered with `neato -n2`, which needs Graphviz installed.
    """
    config = config or LayoutConfig()
    P = pydot.Dot(graph_type="graph")
    P.set("splines", "true")
    P.set("outputorder", "edgesfirst")

    def pos(x: float, y: float) -> str:
        # Graphviz y grows upwards
        return f"{x:.2f},{-y:.2f}!"

    inches = config.node_radius * 2 / 72
    for node in scene.nodes:
        gender = node.person.gender if node.person else None
        P.add_node(
            pydot.Node(
                node.id,
                label=node_label(node.person),
                pos=pos(node.x, node.y),
                shape="circle",
                style="filled",
                fillcolor=FILL_COLORS.get(gender, DEFAULT_FILL),
                width=f"{inches:.2f}",
                fixedsize="true",
                fontsize="8",
            )
        )

    for hub in scene.hubs.values():
        P.add_node(
            pydot.Node(
                _hub_name(hub.key),
                pos=pos(hub.x, hub.attach_y),
                shape="point",
                width="0.05",
                label="",
            )
        )

    for connector in scene.connectors:
        style = "dashed" if connector.kind == "union" else "solid"
        P.add_edge(pydot.Edge(connector.a_id, connector.b_id, color="darkgray", style=style, penwidth="1.5"))

    for link in scene.child_links:
        source = _hub_name(link.hub_key) if link.hub_key else link.parent_ids[0]
        P.add_edge(pydot.Edge(source, link.child_id, color="darkgray"))

    output_path = Path(output_path)
    ext = output_path.suffix.lower().lstrip(".")
    if ext in ("dot", "gv"):
        P.write(str(output_path), format="raw")
    else:
        if ext not in ("png", "svg", "pdf"):
            ext = "png"
        P.write(str(output_path), prog=["neato", "-n2"], format=ext)
    logger.info("Graph saved to %s", output_path)
