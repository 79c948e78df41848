import tkinter as tk
from tkinter import filedialog, messagebox
from PIL import Image, ImageTk
from pathlib import Path
from ilbmdecoder import decode_ilbm_file, header_info
from image_export import to_pil_image, rgb_histograms, plot_histogram_image
import viewer_style as style


# ==== ILBM Viewer ====
class ILBMViewer(tk.Frame):
    def __init__(self, master, file_path=None):
        super().__init__(master, bg=style.BG_MAIN)
        self.master = master
        self.pack(fill="both", expand=True)
        self.file_path = file_path

        # Toolbar
        toolbar = tk.Frame(self, bg=style.BG_TOOLBAR, padx=10, pady=8)
        toolbar.pack(side="top", fill="x")
        for text, cmd in (("Open IFF", self.open_iff), ("Zoom In", self.zoom_in),
                          ("Zoom Out", self.zoom_out), ("Save PNG", self.save_png)):
            tk.Button(toolbar, text=text, command=cmd,
                      bg=style.BG_BUTTON, fg=style.FG_BUTTON,
                      font=style.FONT_BUTTON, relief="flat", padx=10, pady=4).pack(side="left", padx=5)

        # Main Frame
        main_frame = tk.Frame(self, bg=style.BG_MAIN)
        main_frame.pack(fill="both", expand=True, padx=10, pady=10)

        # Canvas frame
        canvas_frame = tk.Frame(main_frame, bg=style.BG_MAIN)
        canvas_frame.pack(side="left", fill="both", expand=True, padx=(0,10))
        self.canvas = tk.Canvas(canvas_frame, bg=style.BG_PANEL, cursor="cross")
        self.canvas.pack(side="top", fill="both", expand=True)
        self.scroll_y = tk.Scrollbar(canvas_frame, orient="vertical", command=self.canvas.yview)
        self.scroll_y.pack(side="right", fill="y")
        self.scroll_x = tk.Scrollbar(main_frame, orient="horizontal", command=self.canvas.xview)
        self.scroll_x.pack(side="bottom", fill="x")
        self.canvas.configure(yscrollcommand=self.scroll_y.set, xscrollcommand=self.scroll_x.set)

        self.canvas.bind("<Button-1>", self.get_pixel_info)
        self.canvas.bind("<ButtonPress-2>", self.start_pan)
        self.canvas.bind("<B2-Motion>", self.pan_image)
        self.canvas.bind("<MouseWheel>", self.on_mousewheel)
        self.canvas.bind("<Button-4>", self.on_mousewheel_linux)
        self.canvas.bind("<Button-5>", self.on_mousewheel_linux)

        # Info Panel
        info_frame = tk.Frame(main_frame, bg=style.BG_PANEL, bd=2, relief="groove", padx=15, pady=15)
        info_frame.pack(side="right", fill="y")
        tk.Label(info_frame, text="Pixel Info", font=style.FONT_HEADER,
                 bg=style.BG_PANEL, fg=style.FG_TEXT).pack(anchor="w", pady=(0,5))
        self.pixel_label = tk.Label(info_frame,
            text="Click on the image to view pixel RGBA values.",
            font=style.FONT_TEXT, justify="left", bg=style.BG_PANEL, fg=style.FG_SUBTEXT)
        self.pixel_label.pack(anchor="w", pady=(0,10))
        self.color_preview = tk.Canvas(info_frame, width=80, height=50, bg="#cccccc", bd=1, relief="solid")
        self.color_preview.pack(anchor="w", pady=(0,20))
        tk.Frame(info_frame, height=2, bg="#e0e0e0").pack(fill="x", pady=10)
        tk.Label(info_frame, text="Header Info", font=style.FONT_HEADER,
                 bg=style.BG_PANEL, fg=style.FG_TEXT).pack(anchor="w", pady=(0,5))
        self.header_text = tk.Text(info_frame, height=16, width=36,
                                   font=style.FONT_MONO, bg="#f9f9f9", fg="#222",
                                   relief="flat", wrap="none")
        self.header_text.pack(anchor="w", pady=(0,5))
        self.header_text.configure(state="disabled")
        tk.Label(info_frame, text="Color Palette", font=style.FONT_HEADER,
                 bg=style.BG_PANEL, fg=style.FG_TEXT).pack(anchor="w", pady=(10,5))
        self.palette_canvas = tk.Canvas(info_frame, width=256, height=128, bg="#fff", bd=1, relief="solid")
        self.palette_canvas.pack(anchor="w")

        # Histogram panel
        self.hist_frame = tk.Frame(canvas_frame, bg=style.BG_MAIN)
        self.hist_frame.pack(side="bottom", fill="x", pady=(10,0))

        # Vars
        self.document = None
        self.image = None
        self.tk_img = None
        self.zoom_factor = 1.0
        self.pan_start = None
        self.hist_refs = []

        if file_path:
            self.load_iff(file_path)

    # ==== File Handling ====
    def open_iff(self):
        file_path = filedialog.askopenfilename(filetypes=style.IFF_FILETYPES)
        if file_path:
            self.load_iff(file_path)

    def load_iff(self, file_path):
        try:
            doc = decode_ilbm_file(file_path)
        except Exception as e:
            messagebox.showerror("Error", f"Failed to open IFF file:\n{e}")
            return
        if doc.image is None:
            messagebox.showwarning("No image", f"{Path(file_path).name} contains no ILBM/PBM image data.")
            return
        self.file_path = file_path
        self.document = doc
        self.image = to_pil_image(doc.image)
        self.zoom_factor = 1.0
        self.display_image()
        self.show_header_info()
        self.draw_palette()
        self.show_histograms()

    def save_png(self):
        if not self.image: return
        out = filedialog.asksaveasfilename(defaultextension=".png", filetypes=[("PNG files","*.png")])
        if out:
            try:
                self.image.save(out, format="PNG")
            except OSError as e:
                messagebox.showerror("Error", f"Failed to save PNG:\n{e}")

    # ==== Display & Zoom ====
    def display_image(self, img=None):
        if img is None: img = self.image
        if img:
            w = max(1, int(img.width*self.zoom_factor))
            h = max(1, int(img.height*self.zoom_factor))
            img_resized = img.resize((w,h), Image.NEAREST)
            self.tk_img = ImageTk.PhotoImage(img_resized)
            self.canvas.delete("all")
            self.canvas.create_image(0,0, anchor="nw", image=self.tk_img)
            self.canvas.config(scrollregion=self.canvas.bbox("all"))

    def zoom_in(self): self.zoom_factor*=1.25; self.display_image()
    def zoom_out(self): self.zoom_factor/=1.25; self.display_image()
    def on_mousewheel(self,event): self.zoom_in() if event.delta>0 else self.zoom_out()
    def on_mousewheel_linux(self,event):
        if event.num==4: self.zoom_in()
        elif event.num==5: self.zoom_out()
    def start_pan(self,event): self.pan_start=(event.x,event.y)
    def pan_image(self,event):
        if self.pan_start:
            dx=self.pan_start[0]-event.x
            dy=self.pan_start[1]-event.y
            self.canvas.xview_scroll(int(dx/2),"units")
            self.canvas.yview_scroll(int(dy/2),"units")
            self.pan_start=(event.x,event.y)

    # ==== Pixel info ====
    def get_pixel_info(self,event):
        if self.document:
            image=self.document.image
            x=int(self.canvas.canvasx(event.x)/self.zoom_factor)
            y=int(self.canvas.canvasy(event.y)/self.zoom_factor)
            if 0<=x<image.width and 0<=y<image.height:
                r,g,b,a=image.getpixel(x,y)
                self.pixel_label.config(text=f"X:{x}\nY:{y}\nR:{r}\nG:{g}\nB:{b}\nA:{a}")
                self.color_preview.config(bg=f"#{r:02x}{g:02x}{b:02x}")

    # ==== Header info ====
    def show_header_info(self):
        doc=self.document
        lines=[f"{k}: {v}" for k,v in header_info(doc, Path(self.file_path)).items()]
        for i,crng in enumerate(doc.color_ranges):
            arrow="<-" if crng.reverse else "->"
            state="on" if crng.active else "off"
            lines.append(f"CRNG {i}: {crng.lower}{arrow}{crng.upper} rate {crng.rate} ({state})")
        self.header_text.configure(state="normal")
        self.header_text.delete("1.0","end")
        self.header_text.insert("1.0","\n".join(lines))
        self.header_text.configure(state="disabled")

    # ==== Palette ====
    def draw_palette(self):
        self.palette_canvas.delete("all")
        cmap=self.document.cmap if self.document else None
        if not cmap: return
        PAD=2; cols=16; cell=16
        total=min(256,cmap.num_colors)
        rows=(total+cols-1)//cols
        self.palette_canvas.config(width=cols*cell+PAD*2, height=rows*cell+PAD*2)
        for i,(r,g,b,_) in enumerate(cmap.palette[:total]):
            col=i%cols; row=i//cols
            x=PAD+col*cell; y=PAD+row*cell
            self.palette_canvas.create_rectangle(x,y,x+cell,y+cell, fill=f"#{r:02x}{g:02x}{b:02x}", outline="")

    # ==== Channel histograms ====
    def show_histograms(self):
        for w in self.hist_frame.winfo_children():
            w.destroy()
        self.hist_refs.clear()

        rhist, ghist, bhist = rgb_histograms(self.document.image)
        for name, hist, color in (("R", rhist, "red"), ("G", ghist, "green"), ("B", bhist, "blue")):
            frame = tk.Frame(self.hist_frame, bg=style.BG_MAIN)
            frame.pack(side="left", padx=5, pady=5)
            tk.Label(frame, text=f"{name} Histogram", bg=style.BG_MAIN).pack()
            hist_img = ImageTk.PhotoImage(plot_histogram_image(hist, color=color, width=200, height=100))
            tk.Label(frame, image=hist_img, bg=style.BG_MAIN).pack()
            self.hist_refs.append(hist_img)

# ==== Main ====
if __name__=="__main__":
    root=tk.Tk()
    root.title("IFF ILBM Viewer")
    root.geometry("1200x800")
    app=ILBMViewer(root)
    app.pack(fill="both", expand=True)
    root.mainloop()
