import io
import struct

import numpy as np
import pytest

from pymrc import (MRCHeader, SHORT2, RGB24, default_header, pack_header, prepare_header, image_stats,
                   pad_extended_header, write, write_to, write_array, write_image, read, MRCImage,
                   PreconditionError, UnsupportedModeError, MRCWarning)


def _header_for(data, **fields):
    h = default_header()
    h.nx, h.ny = data.shape[:2]
    h.nz = data.shape[2] if data.ndim == 3 else 1
    for name, value in fields.items():
        setattr(h, name, value)
    return h


@pytest.mark.parametrize("nsymbt", [0, 4, 1024])
def test_pack_header_is_1024_bytes(nsymbt):
    h = MRCHeader(nsymbt=nsymbt, exthead=b'\1' * nsymbt)
    assert len(pack_header(h)) == 1024


def test_pack_header_layout():
    h = MRCHeader(nx=4, ny=3, nz=2, mode=2, mx=4, my=3, mz=2, cella=1.5, cellb=-2.25, cellc=1e-3,
                  dmin=-1.0, dmax=8.0, dmean=0.5, ispg=1, nsymbt=8, extra_space1=(7, 8),
                  exttype='FEI1', nversion=20140, origin_x=10.0, origin_y=20.0, origin_z=30.0,
                  rms=0.125, nlabl=1)
    h.labels = ['test label']
    raw = pack_header(h, '<')
    assert struct.unpack('<10i', raw[0:40]) == (4, 3, 2, 2, 0, 0, 0, 4, 3, 2)
    assert raw[40:44] == struct.pack('<f', 1.5)
    assert raw[44:48] == struct.pack('<f', -2.25)
    assert raw[48:52] == np.float32(1e-3).tobytes()
    assert struct.unpack('<3f', raw[52:64]) == (90.0, 90.0, 90.0)
    assert struct.unpack('<3f', raw[64:76]) == (1.0, 2.0, 3.0)
    assert struct.unpack('<3f', raw[76:88]) == (-1.0, 8.0, 0.5)
    assert struct.unpack('<4i', raw[88:104]) == (1, 8, 7, 8)
    assert raw[104:108] == b'FEI1'
    assert struct.unpack('<i', raw[108:112]) == (20140,)
    assert raw[112:196] == b'\0' * 84
    assert struct.unpack('<3f', raw[196:208]) == (10.0, 20.0, 30.0)
    assert struct.unpack('<f', raw[216:220]) == (0.125,)
    assert struct.unpack('<i', raw[220:224]) == (1,)
    assert raw[224:304] == b'test label'.ljust(80)
    assert raw[304:] == b' ' * 720


def test_pack_header_keeps_float_bits():
    # values that do not survive a numeric conversion to an integer
    h = MRCHeader(cella=np.float32(np.nan), cellb=np.float32(-0.0), cellc=np.float32(3.4e38))
    raw = pack_header(h, '<')
    assert raw[40:44] == np.float32(np.nan).tobytes()
    assert raw[44:48] == b'\0\0\0\x80'
    assert raw[48:52] == np.float32(3.4e38).tobytes()


def test_pack_header_big_endian():
    h = MRCHeader(nx=4, cella=1.5, exttype='SERI', map=b' PAM', machst=bytes([0, 0, 65, 68]))
    raw = pack_header(h, '>')
    assert struct.unpack('>i', raw[0:4]) == (4,)
    assert raw[40:44] == struct.pack('>f', 1.5)
    assert raw[104:108] == b'SERI'
    assert raw[208:212] == b' PAM'
    assert raw[212:216] == bytes([0, 0, 65, 68])
    assert raw[224:1024] == b' ' * 800


def test_pack_header_short_label_zero_padded():
    h = MRCHeader(label='abc')
    assert pack_header(h)[224:] == b'abc' + b'\0' * 797


def test_image_stats():
    data = np.array([[1, 2], [3, 4]], np.float32)
    dmin, dmax, dmean, rms = image_stats(data)
    assert (dmin, dmax, dmean) == (1.0, 4.0, 2.5)
    np.testing.assert_allclose(rms, np.sqrt(1.25), rtol=1e-6)


def test_image_stats_accumulates_in_double_precision():
    data = np.random.default_rng(7).uniform(3000, 3666, 1000003).astype(np.float32)
    _, _, dmean, rms = image_stats(data)
    assert dmean == np.float32(data.mean(dtype=np.float64))
    assert rms == np.float32(data.std(dtype=np.float64))


def test_image_stats_complex():
    data = np.array([[3+4j, 0], [0, 1j]], np.complex64)
    dmin, dmax, dmean, _ = image_stats(data)
    assert (dmin, dmax, dmean) == (0.0, 5.0, 1.5)
    pairs = np.zeros((1, 2), SHORT2)
    pairs['real'] = [3, 0]
    pairs['imag'] = [4, 2]
    assert image_stats(pairs)[:3] == (2.0, 5.0, 3.5)


@pytest.mark.parametrize(
    "exthead, expected_len",
    [
        (b'', 0),
        (b'\1' * 5, 8),
        (b'\1' * 8, 8),
        (np.arange(5, dtype=np.int8), 8),
        (np.arange(3, dtype=np.int16), 8),
        (np.arange(4, dtype=np.uint16), 8),
        (np.arange(3, dtype=np.int32), 12),
    ]
)
def test_pad_extended_header(exthead, expected_len):
    padded = pad_extended_header(exthead)
    raw = exthead.tobytes() if isinstance(exthead, np.ndarray) else exthead
    assert len(padded) == expected_len
    assert padded[:len(raw)] == raw
    assert padded[len(raw):] == b'\0' * (expected_len - len(raw))


def test_prepare_header_does_not_modify_header():
    data = np.full((4, 3), 2, np.int16)
    h = _header_for(data, dmin=-5.0, dmax=-5.0, mode=2)
    written = prepare_header(data, h, '<')
    assert (h.mode, h.dmin, h.dmax, h.dmean, h.rms) == (2, -5.0, -5.0, 0.0, 0.0)
    assert written.mode == 1
    assert (written.dmin, written.dmax, written.dmean, written.rms) == (2.0, 2.0, 2.0, 0.0)
    assert (written.map, written.machst) == (b'MAP ', bytes([68, 65, 0, 0]))


def test_prepare_header_byteorder_tags():
    data = np.zeros((2, 2), np.float32)
    written = prepare_header(data, _header_for(data), 'big')
    assert written.map == b' PAM'
    assert written.machst == bytes([0, 0, 65, 68])


def test_write_little_endian_tags(mrc_path):
    write_array(np.zeros((4, 3), np.float32), mrc_path, byteorder='<')
    raw = mrc_path.read_bytes()
    assert raw[208:212] == b'MAP '
    assert list(raw[212:216]) == [68, 65, 0, 0]
    assert len(raw) == 1024 + 4*3*4


def test_write_pixel_order(mrc_path):
    data = np.arange(12, dtype=np.int32).reshape(4, 3)
    write_array(data, mrc_path)
    raw = mrc_path.read_bytes()
    disk = np.frombuffer(raw[1024:], np.int32)
    # X changes fastest in the file
    np.testing.assert_array_equal(disk, data.T.ravel())


def test_write_to_stream():
    data = np.arange(24, dtype=np.uint16).reshape(2, 3, 4)
    f = io.BytesIO()
    h = write_to(f, data, _header_for(data, ispg=1, mz=4))
    raw = f.getvalue()
    assert len(raw) == 1024 + data.nbytes
    assert h.mode == 6
    np.testing.assert_array_equal(np.frombuffer(raw[1024:], np.uint16), data.transpose(2, 1, 0).ravel())


def test_write_extended_header(mrc_path):
    data = np.ones((2, 2), np.float32)
    ext = bytes(range(6))
    h = write(data, _header_for(data, nsymbt=6, exthead=ext, exttype='AGAR'), mrc_path)
    assert h.nsymbt == 8
    raw = mrc_path.read_bytes()
    assert struct.unpack('<i', raw[92:96]) == (8,)
    assert raw[1024:1032] == ext + b'\0\0'
    assert len(raw) == 1024 + 8 + 16


def test_write_extended_header_length_mismatch(mrc_path):
    data = np.ones((2, 2), np.float32)
    with pytest.raises(PreconditionError):
        write(data, _header_for(data, nsymbt=8, exthead=b'\0' * 4), mrc_path)
    assert not mrc_path.exists()


@pytest.mark.parametrize("shape", [(3, 4), (4, 3, 2), (4, 4)])
def test_write_shape_mismatch(mrc_path, shape):
    h = MRCHeader(nx=4, ny=3, nz=1)
    with pytest.raises(PreconditionError):
        write(np.zeros(shape, np.float32), h, mrc_path)
    assert not mrc_path.exists()


@pytest.mark.parametrize("shape", [(0, 3), (4, 0), (4, 3, 0)])
def test_write_empty_data(mrc_path, shape):
    with pytest.raises(PreconditionError):
        write_array(np.zeros(shape, np.float32), mrc_path)
    with pytest.raises(PreconditionError):
        write(np.zeros(shape, np.float32), MRCHeader(nx=shape[0], ny=shape[1], nz=0), mrc_path)
    assert not mrc_path.exists()


def test_write_non_latin1_label(mrc_path):
    h = MRCHeader(nx=2, ny=2)
    with pytest.raises(ValueError):
        h.labels = ['\u20ac']
    with pytest.raises(ValueError):
        h.label = 'price in \u20ac'
    write(np.zeros((2, 2), np.float32), h, mrc_path)
    assert read(mrc_path).header.labels == []


def test_write_shape_mismatch_keeps_existing_file(mrc_path):
    mrc_path.write_bytes(b'existing')
    with pytest.raises(PreconditionError):
        write(np.zeros((2, 2), np.float32), MRCHeader(nx=4, ny=3), mrc_path)
    assert mrc_path.read_bytes() == b'existing'


def test_write_3d_with_single_section(mrc_path):
    data = np.zeros((4, 3, 1), np.float32)
    h = write(data, MRCHeader(nx=4, ny=3, nz=1), mrc_path)
    assert h.nz == 1


@pytest.mark.parametrize("dt", [np.float64, np.int64, np.bool_, np.complex128])
def test_write_unsupported_type(mrc_path, dt):
    with pytest.raises(PreconditionError):
        write_array(np.zeros((2, 2), dt), mrc_path)
    assert not mrc_path.exists()


@pytest.mark.parametrize("shape", [(2, 2), (3, 5, 2), (7,)])
def test_write_rgb_mode_unsupported(mrc_path, shape):
    data = np.zeros((2, 2), np.float32)
    with pytest.raises(UnsupportedModeError):
        write(data, MRCHeader(nx=2, ny=2, mode=16), mrc_path)
    with pytest.raises(UnsupportedModeError):
        write(np.zeros(shape, RGB24), MRCHeader(nx=2, ny=2), mrc_path)
    assert not mrc_path.exists()


def test_write_not_an_array(mrc_path):
    with pytest.raises(PreconditionError):
        write([[1.0, 2.0]], MRCHeader(nx=1, ny=2), mrc_path)


@pytest.mark.parametrize("name", ['image.tif', 'image.mrc.bak', 'image'])
def test_write_bad_extension(tmp_path, name):
    with pytest.raises(PreconditionError):
        write_array(np.zeros((2, 2), np.float32), tmp_path / name)
    assert not (tmp_path / name).exists()


@pytest.mark.parametrize("kind", ['images', 'Volume', '', 'rgb'])
def test_write_array_bad_kind(mrc_path, kind):
    with pytest.raises(PreconditionError):
        write_array(np.zeros((2, 2), np.float32), mrc_path, kind)
    assert not mrc_path.exists()


def test_write_array_1d(mrc_path):
    with pytest.raises(PreconditionError):
        write_array(np.zeros(4, np.float32), mrc_path)


@pytest.mark.parametrize(
    "kind, ispg, mz, dim",
    [
        ('image', 0, 1, 0),
        ('stack', 0, 5, 1),
        ('volume', 1, 5, 2),
    ]
)
def test_write_array_kinds(tmp_path, volume, kind, ispg, mz, dim):
    filename = tmp_path / ('out.mrcs' if kind == 'stack' else 'out.mrc')
    h = write_array(volume, filename, kind)
    assert (h.nx, h.ny, h.nz) == (4, 3, 5)
    assert (h.ispg, h.mz, h.dim) == (ispg, mz, dim)


def test_write_stack_without_stack_extension_warns(mrc_path, volume):
    with pytest.warns(MRCWarning):
        write_array(volume, mrc_path, 'stack')
    assert mrc_path.exists()


def test_write_volume_with_stack_extension_warns(mrcs_path, volume):
    with pytest.warns(MRCWarning):
        write_array(volume, mrcs_path, 'volume')


def test_write_image(tmp_path, volume):
    target = tmp_path / 'copy.mrc'
    image = MRCImage(volume, _header_for(volume, ispg=1, mz=5), str(target))
    write_image(image)
    data, header = read(target)
    np.testing.assert_array_equal(data, volume)
    with pytest.raises(PreconditionError):
        write_image(MRCImage(volume, image.header))
