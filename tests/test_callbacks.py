"""
Tests for callback functionality
"""

import pytest
import numpy as np
from somap import Map, MapConfig, TrainConfig
from somap.callbacks import Callback, EarlyStoppingCallback, HistoryCallback


class RecordingCallback(Callback):
    """Record every hook invocation"""

    def __init__(self):
        self.events = []

    def on_training_begin(self, som):
        self.events.append("begin")

    def on_epoch_end(self, epoch, som, metrics):
        self.events.append(epoch)

    def on_training_end(self, som):
        self.events.append("end")


@pytest.mark.unit
class TestCallbackHooks:
    """Test hook ordering"""

    @pytest.mark.unit
    def test_abstract(self):
        with pytest.raises(TypeError):
            Callback()

    @pytest.mark.unit
    def test_hook_order(self, iris_map, iris_data, seq_config):
        recorder = RecordingCallback()
        iris_map.train(seq_config, iris_data, 3, callbacks=[recorder])
        assert recorder.events == ["begin", 0, 1, 2, "end"]

    @pytest.mark.unit
    def test_codebook_committed_at_end(self, iris_map, iris_data, seq_config):
        before = iris_map.codebook
        seen = {}

        class Snapshot(RecordingCallback):
            def on_epoch_end(self, epoch, som, metrics):
                seen.setdefault("during", som.codebook)

            def on_training_end(self, som):
                seen["end"] = som.codebook

        iris_map.train(seq_config, iris_data, 5, callbacks=[Snapshot()])
        np.testing.assert_array_equal(seen["during"], before)
        np.testing.assert_array_equal(seen["end"], iris_map.codebook)


@pytest.mark.unit
class TestHistoryCallback:
    """Test metric history recording"""

    @pytest.mark.unit
    def test_history(self, iris_map, iris_data, seq_config):
        history = HistoryCallback()
        iris_map.train(seq_config, iris_data, 10, callbacks=[history])
        assert len(history.history) == 10
        assert history.history[0]["radius"] == 10.0
        assert history.history[0]["learning_rate"] == 0.5

    @pytest.mark.unit
    def test_history_reset(self, iris_map, iris_data, seq_config):
        history = HistoryCallback()
        iris_map.train(seq_config, iris_data, 4, callbacks=[history])
        iris_map.train(seq_config, iris_data, 2, callbacks=[history])
        assert len(history.history) == 2


@pytest.mark.integration
class TestEarlyStoppingCallback:
    """Test early stopping callback functionality"""

    @pytest.mark.unit
    def test_early_stopping_creation(self):
        callback = EarlyStoppingCallback(monitor="qe", patience=5, min_delta=1e-3)
        assert callback.monitor == "qe"
        assert callback.patience == 5
        assert callback.min_delta == 1e-3
        assert callback.best_value == float("inf")
        assert callback.wait == 0

    @pytest.mark.integration
    def test_early_stopping_trigger(self, sample_data):
        config = MapConfig(size=(3, 3), seed=42)
        callback = EarlyStoppingCallback(monitor="qe", patience=3, min_delta=1e-6)

        som = Map(config, sample_data, verbose=False)
        # a tiny radius keeps the batch codebook fixed after the first epoch
        som.train(
            TrainConfig(algorithm="batch", radius=0.5, workers=2), sample_data, 100
        )
        som.train(
            TrainConfig(algorithm="batch", radius=0.5, workers=2),
            sample_data,
            100,
            callbacks=[callback],
        )

        history = som.metadata["training_history"][-1]
        assert history["completed"] < 100
        assert som.metadata["total_iterations"] < 200

    @pytest.mark.unit
    def test_stop_flag_set(self):
        callback = EarlyStoppingCallback(patience=2)

        class Dummy:
            stop_training = False

        som = Dummy()
        callback.on_training_begin(som)
        for epoch, qe in enumerate([1.0, 1.0, 1.0]):
            callback.on_epoch_end(epoch, som, {"qe": qe})
        assert som.stop_training is True

    @pytest.mark.unit
    def test_early_stopping_reset_on_training_begin(self):
        callback = EarlyStoppingCallback(patience=5)
        callback.best_value = 0.5
        callback.wait = 3

        # Simulate training begin
        callback.on_training_begin(None)

        assert callback.best_value == float("inf")
        assert callback.wait == 0
