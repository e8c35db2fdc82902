import cv2
import numpy as np

import main


def test_single_image(fake_session, model_file, tmp_path, test_image):
    image_path = tmp_path / "room.png"
    cv2.imwrite(str(image_path), cv2.cvtColor(test_image, cv2.COLOR_RGB2BGR))
    out_dir = tmp_path / "out"

    code = main.main(["--input", str(image_path), "--model", model_file, "--output_dir", str(out_dir)])

    assert code == 0
    depth = cv2.imread(str(out_dir / "room_depth.png"))
    assert depth.shape == test_image.shape


def test_picks_first_model_in_dir(fake_session, tmp_path):
    (tmp_path / "b.onnx").write_bytes(b"x")
    (tmp_path / "a.onnx").write_bytes(b"x")
    args = main.parse_args(["--model", "", "--model_dir", str(tmp_path)])
    assert main.pick_model(args) == str(tmp_path / "a.onnx")


def test_missing_model_exits_nonzero(tmp_path, test_image):
    image_path = tmp_path / "room.png"
    cv2.imwrite(str(image_path), test_image)
    code = main.main(["--input", str(image_path), "--model", "missing.onnx", "--model_dir", str(tmp_path)])
    assert code == 1


def test_unreadable_image_exits_nonzero(fake_session, model_file, tmp_path):
    code = main.main(["--input", str(tmp_path / "nope.png"), "--model", model_file])
    assert code == 1


def test_list_models(tmp_path, capsys):
    (tmp_path / "depth.onnx").write_bytes(b"x")
    assert main.main(["--list_models", "--model_dir", str(tmp_path)]) == 0
    assert "depth.onnx" in capsys.readouterr().out


def test_video_stream(fake_session, model_file, tmp_path):
    video_path = tmp_path / "clip.avi"
    writer = cv2.VideoWriter(str(video_path), cv2.VideoWriter_fourcc(*"MJPG"), 10.0, (32, 24))
    for i in range(8):
        writer.write(np.full((24, 32, 3), i * 30, dtype=np.uint8))
    writer.release()
    out_dir = tmp_path / "out"

    code = main.main(["--input", str(video_path), "--model", model_file,
                      "--output_dir", str(out_dir), "--save_frames", "--realtime"])

    assert code == 0
    assert (out_dir / "clip_depth.mp4").exists()
    assert list((out_dir / "clip_depth" / "depths").glob("depth_*.png"))
