class UsageError(ValueError):
    """
    Kesalahan konfigurasi atau pemakaian (misal daftar sub-interval kosong,
    atau panjang window tidak habis dibagi ukuran sub-interval).
    Tidak di-retry: harus diperbaiki oleh pemanggil.
    """
