"""Tests for the notice board."""

from insurance_recon.notices import Notice, NoticeBoard, NoticeLevel


class TestNoticeBoard:
    """Tests for NoticeBoard."""

    def test_post_buffers_and_returns_notice(self):
        """Test that a posted notice is buffered and returned."""
        board = NoticeBoard()

        notice = board.success("数据处理成功", action="process", period_id=3)

        assert board.recent == [notice]
        assert notice.level is NoticeLevel.SUCCESS
        assert notice.period_id == 3

    def test_handlers_receive_notices(self):
        """Test subscribe and unsubscribe."""
        board = NoticeBoard()
        received: list[Notice] = []
        board.subscribe(received.append)

        board.info("请先选择账期")
        board.unsubscribe(received.append)
        board.info("ignored")

        assert [n.message for n in received] == ["请先选择账期"]

    def test_failing_handler_does_not_block_others(self):
        """Test that a broken handler does not stop delivery."""
        board = NoticeBoard()
        received: list[Notice] = []

        def broken(notice):
            raise RuntimeError("handler crashed")

        board.subscribe(broken)
        board.subscribe(received.append)

        board.error("加载账期失败")

        assert len(received) == 1

    def test_buffer_is_bounded(self):
        """Test that only the newest notices are kept."""
        board = NoticeBoard(buffer_size=2)

        for i in range(5):
            board.info(f"n{i}")

        assert [n.message for n in board.recent] == ["n3", "n4"]

    def test_errors_and_drain(self):
        """Test filtering errors and draining the buffer."""
        board = NoticeBoard()
        board.info("a")
        board.error("b")

        assert [n.message for n in board.errors()] == ["b"]
        assert len(board.drain()) == 2
        assert board.recent == []

    def test_to_dict(self):
        """Test notice serialization."""
        notice = Notice(level=NoticeLevel.ERROR, message="x", action="export")

        data = notice.to_dict()

        assert data["level"] == "error"
        assert data["action"] == "export"
        assert data["period_id"] is None
        assert "created_at" in data
