from pico_resolver.tracing import MAX_TRACES, TraceService, current_run


class TestTraceService:
    def test_start_and_end_run(self, tracer):
        run_id = tracer.start_run("resolve:image", "resolve", {"force_refresh": False})
        tracer.end_run(run_id, outputs={"identifier": "imagen-4", "source": "probe"})

        [run] = tracer.get_traces()
        assert run["name"] == "resolve:image"
        assert run["inputs"] == {"force_refresh": False}
        assert run["outputs"] == {"identifier": "imagen-4", "source": "probe"}
        assert run["end_time"] >= run["start_time"]

    def test_scalar_outputs_are_wrapped(self, tracer):
        run_id = tracer.start_run("invoke:x", "invoke")
        tracer.end_run(run_id, outputs=3)
        assert tracer.get_traces()[0]["outputs"] == {"output": 3}

    def test_other_outputs_are_stringified(self, tracer):
        run_id = tracer.start_run("invoke:x", "invoke")
        tracer.end_run(run_id, outputs=["a", "b"])
        assert tracer.get_traces()[0]["outputs"] == {"output": "['a', 'b']"}

    def test_error_and_extra(self, tracer):
        run_id = tracer.start_run("invoke:x", "invoke")
        tracer.end_run(run_id, error=RuntimeError("quota"), category="rate_limited")

        run = tracer.get_traces()[0]
        assert run["error"] == "quota"
        assert run["outputs"] is None
        assert run["extra"] == {"category": "rate_limited"}

    def test_nested_runs_record_parent(self, tracer):
        before = current_run.get()
        outer = tracer.start_run("generation:image", "generation")
        inner = tracer.start_run("resolve:image", "resolve")
        tracer.end_run(inner)
        assert current_run.get() == outer
        tracer.end_run(outer)

        runs = {run["id"]: run for run in tracer.get_traces()}
        assert runs[inner]["parent_id"] == outer
        assert current_run.get() == before

    def test_filter_by_type(self, tracer):
        tracer.end_run(tracer.start_run("a", "resolve"))
        tracer.end_run(tracer.start_run("b", "invoke"))
        assert [run["name"] for run in tracer.get_traces("invoke")] == ["b"]

    def test_unknown_run_id_is_ignored(self, tracer):
        tracer.end_run("missing", outputs="x")
        assert tracer.get_traces() == []

    def test_history_is_bounded(self):
        tracer = TraceService()
        for i in range(MAX_TRACES + 5):
            tracer.end_run(tracer.start_run(f"run{i}", "resolve"))
        traces = tracer.get_traces()
        assert len(traces) == MAX_TRACES
        assert traces[0]["name"] == "run5"

    def test_shutdown_clears(self, tracer):
        tracer.end_run(tracer.start_run("a", "resolve"))
        tracer._on_shutdown()
        assert tracer.get_traces() == []
