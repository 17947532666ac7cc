# graphwidget.py

from PyQt5.QtWidgets import (
    QGraphicsView, QGraphicsScene, QGraphicsSimpleTextItem, QGraphicsItem, QMenu,
)
from PyQt5.QtCore import Qt, QPointF, QTimer, QElapsedTimer
from PyQt5.QtGui import QPen, QColor, QPainter, QPainterPath, QFont, QFontMetricsF
from PyQt5.QtWidgets import QGraphicsScene as QGS
from typing import Optional
from graph import Graph, GraphConfig, MODE_HIERARCHICAL

# Zoom behavior constants
ZOOM_FACTOR = 1.15
ZOOM_MAX = 50.0
MIN_ABS_SCALE = 1e-3

# Frame loop (~60 FPS; Qt timers take integer ms)
ANIM_FPS = 60
ANIM_DT_MS = 1000 // ANIM_FPS

# Pixels of margin around the graph when centering
CENTER_MARGIN = 60.0

# Fraction of the level gap used for the bend of hierarchical edge curves
CURVE_ROUNDNESS = 0.5


def _qp(p) -> QPointF:
    return QPointF(p.x(), p.y())


class GraphWidget(QGraphicsView):
    def __init__(self, parent=None, config: Optional[GraphConfig] = None):
        super().__init__(parent)
        self.graph = Graph(config)
        scene = QGraphicsScene(self)
        scene.setItemIndexMethod(QGS.NoIndex)
        self.setScene(scene)

        self.setRenderHint(QPainter.Antialiasing)
        self.setDragMode(QGraphicsView.NoDrag)
        self.setTransformationAnchor(QGraphicsView.AnchorUnderMouse)
        self.setViewportUpdateMode(QGraphicsView.SmartViewportUpdate)

        self.panning = False
        self.lastPanPoint = None
        self.dragging = False
        self.lastDragScenePos = None
        self._in_update_scene = False

        self.backgroundColor = QColor(255, 255, 255)
        self.edgeColor = QColor(60, 60, 60)
        self.nodeFill = QColor("#48dbfb")
        self.nodeOutline = QColor("#3498db")
        self.fixedOutline = QColor("#e74c3c")
        self.labelColor = QColor(0, 0, 0)

        self.graph.on_layout_changed = self._onLayoutChanged

        # Frame loop
        self._clock = QElapsedTimer()
        self._frameTimer = QTimer(self)
        self._frameTimer.setInterval(ANIM_DT_MS)
        self._frameTimer.timeout.connect(self._onFrame)
        self._clock.start()
        self._frameTimer.start()

    # --------------------------
    # Status helpers
    # --------------------------
    def _status(self, msg: str, ms: int = 3000):
        try:
            self.parent().statusBar().showMessage(msg, ms)
        except Exception:
            pass

    # --------------------------
    # Frame loop
    # --------------------------
    def setAnimationFps(self, fps: int):
        fps = max(1, int(fps))
        self._frameTimer.setInterval(max(1, int(round(1000.0 / fps))))

    def _onFrame(self):
        dt = self._clock.restart() / 1000.0
        stable = self.graph.tick(dt)
        if not stable or self.dragging:
            self.updateGraphScene()

    def setGraphData(self, nodes, edges):
        self.graph.sync(nodes, edges)
        self.updateGraphScene()

    def _onLayoutChanged(self, bbox_tuple, center_point):
        self.updateGraphScene()

    # --------------------------
    # Layout actions
    # --------------------------
    def runEnergyLayout(self):
        try:
            res = self.graph.energy_layout()
        except Exception as ex:
            self._status(f"Energy layout failed: {ex}", 5000)
            return
        self.centerGraph()
        self._status(f"Energy layout: {res.iterations} iterations, {res.moves} moves"
                     f"{'' if res.converged else ' (stopped at cap)'}")

    def runHierarchicalLayout(self, direction: Optional[str] = None):
        try:
            if direction:
                self.graph.set_hierarchy_options(direction=direction)
            levels = self.graph.hierarchical_layout()
        except Exception as ex:
            self._status(f"Hierarchical layout failed: {ex}", 5000)
            return
        self.centerGraph()
        depth = (max(levels.values()) + 1) if levels else 0
        self._status(f"Hierarchical layout: {depth} level(s)")

    def togglePhysics(self):
        if self.graph.is_running():
            self.graph.stop_simulation()
            self._status("Physics paused", 2000)
        else:
            if self.graph.mode == MODE_HIERARCHICAL:
                self.graph.release_hierarchy()
            self.graph.start_simulation()
            self._status("Physics running", 2000)

    # --------------------------
    # Drawing
    # --------------------------
    def drawBackground(self, painter, rect):
        painter.fillRect(rect, self.backgroundColor)

    def _edgePath(self, p1: QPointF, p2: QPointF, curve: Optional[str]) -> QPainterPath:
        path = QPainterPath(p1)
        if curve == "horizontal":
            # levels on y: vertical end tangents, the curve sweeps sideways between levels
            dy = (p2.y() - p1.y()) * CURVE_ROUNDNESS
            path.cubicTo(QPointF(p1.x(), p1.y() + dy), QPointF(p2.x(), p2.y() - dy), p2)
        elif curve == "vertical":
            dx = (p2.x() - p1.x()) * CURVE_ROUNDNESS
            path.cubicTo(QPointF(p1.x() + dx, p1.y()), QPointF(p2.x() - dx, p2.y()), p2)
        else:
            path.lineTo(p2)
        return path

    def updateGraphScene(self):
        if self._in_update_scene:
            return
        self._in_update_scene = True
        try:
            scene = self.scene()
            scene.clear()

            edge_pen = QPen(self.edgeColor)
            edge_pen.setWidthF(1.5)
            edge_pen.setCosmetic(True)
            edge_pen.setCapStyle(Qt.RoundCap)

            snap = self.graph.snapshot()
            if not snap.size():
                self.viewport().update()
                return

            curve = self.graph.curve_type if self.graph.mode == MODE_HIERARCHICAL else None

            # --- Edges ---
            for e in snap.edges:
                a = snap.vertex(e.getSourceId())
                if e.isSelfLoop():
                    r = a.getRadius()
                    p = a.getPosition()
                    scene.addEllipse(p.x(), p.y() - 1.6 * r, 1.2 * r, 1.2 * r, edge_pen).setZValue(-10)
                    continue
                b = snap.vertex(e.getTargetId())
                path = self._edgePath(_qp(a.getPosition()), _qp(b.getPosition()), curve)
                scene.addPath(path, edge_pen).setZValue(-10)

            # --- Nodes + labels ---
            scale_now = max(1e-6, self.transform().m11())
            font = QFont("Arial")
            font.setPixelSize(12)
            fm = QFontMetricsF(font)
            for v in snap.vertices:
                pos = v.getPosition()
                d = v.getDiameter()
                pen = QPen(self.fixedOutline if v.isFixed() else self.nodeOutline, 2)
                pen.setCosmetic(True)
                scene.addEllipse(pos.x() - d / 2, pos.y() - d / 2, d, d, pen, self.nodeFill).setZValue(10)

                label = v.getLabel() or str(v.getId())
                text = QGraphicsSimpleTextItem(label)
                text.setFont(font)
                text.setBrush(self.labelColor)
                text.setFlag(QGraphicsItem.ItemIgnoresTransformations, True)
                w = fm.horizontalAdvance(label)
                h = fm.ascent() + fm.descent()
                text.setPos(pos.x() - (w * 0.5) / scale_now, pos.y() - (h * 0.5) / scale_now)
                text.setZValue(20)
                scene.addItem(text)

            br = scene.itemsBoundingRect()
            if not br.isEmpty():
                scene.setSceneRect(br.adjusted(-CENTER_MARGIN, -CENTER_MARGIN, CENTER_MARGIN, CENTER_MARGIN))
            self.viewport().update()
        finally:
            self._in_update_scene = False

    # --------------------------
    # Camera
    # --------------------------
    def _scaleNow(self):
        return max(1e-9, self.transform().m11())

    def zoomIn(self):
        scale_now = self._scaleNow()
        target = min(ZOOM_MAX, scale_now * ZOOM_FACTOR)
        if target <= scale_now + 1e-12:
            return
        factor = target / scale_now
        self.scale(factor, factor)
        self.updateGraphScene()

    def zoomOut(self):
        scale_now = self._scaleNow()
        target = scale_now / ZOOM_FACTOR
        if target <= MIN_ABS_SCALE:
            return
        factor = target / scale_now
        self.scale(factor, factor)
        self.updateGraphScene()

    def centerGraph(self):
        self.updateGraphScene()
        if not self.scene().items():
            return
        rect = self.scene().itemsBoundingRect()
        safe_rect = rect.adjusted(-CENTER_MARGIN, -CENTER_MARGIN, CENTER_MARGIN, CENTER_MARGIN)
        if safe_rect.width() < 1e-6 or safe_rect.height() < 1e-6:
            return
        self.fitInView(safe_rect, Qt.KeepAspectRatio)
        self.updateGraphScene()

    # --------------------------
    # Input
    # --------------------------
    def wheelEvent(self, event):
        if event.angleDelta().y() > 0:
            self.zoomIn()
        else:
            self.zoomOut()
        event.accept()

    def findVertexAtPosition(self, scenePos):
        v = self.graph.find_vertex_at((scenePos.x(), scenePos.y()))
        return None if v is None else v.getId()

    def mousePressEvent(self, event):
        if event.button() == Qt.LeftButton:
            scenePos = self.mapToScene(event.pos())
            vid = self.findVertexAtPosition(scenePos)
            if vid is not None and self.graph.begin_drag(vid):
                self.dragging = True
                self.lastDragScenePos = scenePos
                self._dragClock = QElapsedTimer()
                self._dragClock.start()
                self.setCursor(Qt.ClosedHandCursor)
            else:
                self.panning = True
                self.lastPanPoint = event.pos()
                self.setCursor(Qt.OpenHandCursor)
            event.accept()
            return
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event):
        if self.dragging:
            scenePos = self.mapToScene(event.pos())
            delta = scenePos - self.lastDragScenePos
            self.lastDragScenePos = scenePos
            dt = self._dragClock.restart() / 1000.0
            self.graph.drag_by(delta.x(), delta.y(), dt if dt > 0 else None)
            self.updateGraphScene()
        elif self.panning:
            delta = self.mapToScene(self.lastPanPoint) - self.mapToScene(event.pos())
            self.lastPanPoint = event.pos()
            self.translate(delta.x(), delta.y())
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event):
        if event.button() == Qt.LeftButton:
            if self.dragging:
                self.graph.end_drag()
                self.dragging = False
                self.lastDragScenePos = None
            self.panning = False
            self.setCursor(Qt.ArrowCursor)
        super().mouseReleaseEvent(event)

    def contextMenuEvent(self, event):
        menu = QMenu(self)
        menu.addAction("Energy Layout (E)", self.runEnergyLayout)
        sub = menu.addMenu("Hierarchical Layout")
        for direction in ("UD", "DU", "LR", "RL"):
            sub.addAction(direction, lambda d=direction: self.runHierarchicalLayout(d))
        menu.addSeparator()
        act = menu.addAction("Physics (P)", self.togglePhysics)
        act.setCheckable(True)
        act.setChecked(self.graph.is_running())
        menu.addAction("Center Graph (C)", self.centerGraph)
        menu.exec_(event.globalPos())

    def keyPressEvent(self, event):
        key = event.key()
        if key == Qt.Key_E:
            self.runEnergyLayout()
        elif key == Qt.Key_H:
            self.runHierarchicalLayout()
        elif key == Qt.Key_P:
            self.togglePhysics()
        elif key == Qt.Key_C:
            self.centerGraph()
        else:
            super().keyPressEvent(event)
