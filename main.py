import tkinter as tk
import traceback

from UIs.app import OutlierLensApp


def main():
    try:
        print("Starting OutlierLens...")
        root = tk.Tk()
        app = OutlierLensApp(root)
        print("GUI ready. Entering mainloop...")
        root.mainloop()
    except Exception as e:
        print("[ERROR]", str(e))
        traceback.print_exc()


if __name__ == "__main__":
    main()
